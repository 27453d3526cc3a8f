"""Object store interface used by the reconciler."""

from __future__ import annotations

from typing import Any, Protocol

from ...utils.deadline import Deadline


class ObjectStore(Protocol):
    """Protocol defining versioned, namespaced object store operations.

    Every method raises ``NotFoundError`` for missing objects and
    ``StoreError`` (or a subclass) for retryable failures.
    """

    def get(self, kind: str, namespace: str, name: str, deadline: Deadline | None = None) -> dict[str, Any]:
        """Fetch an object by identity."""
        ...

    def create(self, kind: str, body: dict[str, Any], deadline: Deadline | None = None) -> dict[str, Any]:
        """Create an object; namespace and name are taken from body metadata."""
        ...

    def update(self, kind: str, body: dict[str, Any], deadline: Deadline | None = None) -> dict[str, Any]:
        """Replace an object's spec and metadata.

        A ``metadata.resourceVersion`` in the body makes the write conditional.
        """
        ...

    def update_status(
        self,
        kind: str,
        body: dict[str, Any],
        status: dict[str, Any],
        deadline: Deadline | None = None,
    ) -> dict[str, Any]:
        """Replace the status subresource of ``body``; spec is never written."""
        ...
