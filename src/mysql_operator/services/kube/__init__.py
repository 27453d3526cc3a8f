"""Kubernetes object store."""

from .base import ObjectStore
from .store import KubeStore, load_kube_config

__all__ = ["ObjectStore", "KubeStore", "load_kube_config"]
