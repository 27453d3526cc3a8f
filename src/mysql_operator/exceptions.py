"""Exception hierarchy for the MySQL Operator."""

from __future__ import annotations


class OperatorError(Exception):
    """Base class for all operator errors."""


class NotFoundError(OperatorError):
    """Requested object does not exist in the store."""

    def __init__(self, kind: str, namespace: str, name: str):
        self.kind = kind
        self.namespace = namespace
        self.name = name
        super().__init__(f"{kind} {namespace}/{name} not found")


class BuildError(OperatorError):
    """The resource spec cannot be turned into child resources.

    Raised for unsatisfiable or contradictory specs. Retrying does not help
    until the spec itself changes.
    """


class StatusComputeError(OperatorError):
    """Status could not be derived from the observed workload."""


class StoreError(OperatorError):
    """Retryable failure talking to the object store."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)


class ConflictError(StoreError):
    """The object was modified concurrently (optimistic concurrency conflict)."""


class DeadlineExceededError(StoreError):
    """The reconcile deadline expired before the store call could complete."""
