"""Kubernetes operator that runs MySQL clusters as StatefulSets."""

__version__ = "0.1.0"
