"""Handler modules for CRD resources."""

from .mysql import MySQLReconciler

__all__ = ["MySQLReconciler"]
