"""Prometheus metrics for the MySQL Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "mysql_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "mysql_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Child resource operation metrics
child_operations_total = Counter(
    "mysql_operator_child_operations_total",
    "Total number of child resource operations",
    ["kind", "operation", "result"],
)

# Configuration drift detection metrics
drift_detected_total = Counter(
    "mysql_operator_drift_detected_total",
    "Total number of configuration drift detections",
    ["kind", "resource_type"],
)

# Status subresource writes
status_updates_total = Counter(
    "mysql_operator_status_updates_total",
    "Total number of status subresource writes",
    ["kind", "result"],
)

# Kubernetes events emitted
events_emitted_total = Counter(
    "mysql_operator_events_emitted_total",
    "Total number of Kubernetes events emitted",
    ["type", "reason"],
)

# Resource status metrics
resource_status_total = Counter(
    "mysql_operator_resource_status_total",
    "Observed resource readiness after status computation",
    ["kind", "status"],
)

# Error metrics
error_total = Counter(
    "mysql_operator_error_total",
    "Total number of errors",
    ["kind", "error_type"],
)

# API call metrics
api_call_total = Counter(
    "mysql_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "mysql_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "mysql_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)
