"""Builders for Kubernetes resources."""

from .mysql import build_mysql_resources
from .status import compute_mysql_status

__all__ = ["build_mysql_resources", "compute_mysql_status"]
