"""Utility functions for the MySQL Operator."""

from .conditions import (
    get_condition,
    is_cluster_initialized,
    is_cluster_ready,
    set_initialized_condition,
    set_ready_condition,
    update_condition,
)
from .context import (
    get_context_dict,
    get_correlation_id,
    set_correlation_id,
    with_correlation_id,
)
from .deadline import Deadline
from .diff import is_subset, semantic_equal
from .events import EventRecorder, emit_event
from .rate_limit import handle_rate_limit_error, rate_limit_k8s

__all__ = [
    "update_condition",
    "set_initialized_condition",
    "set_ready_condition",
    "get_condition",
    "is_cluster_initialized",
    "is_cluster_ready",
    "emit_event",
    "EventRecorder",
    "Deadline",
    "is_subset",
    "semantic_equal",
    "rate_limit_k8s",
    "handle_rate_limit_error",
    "set_correlation_id",
    "get_correlation_id",
    "with_correlation_id",
    "get_context_dict",
]
