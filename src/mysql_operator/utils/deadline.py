"""Deadline tracking for blocking store calls."""

from __future__ import annotations

import time

from ..exceptions import DeadlineExceededError


class Deadline:
    """A monotonic-clock deadline shared by every store call of one reconcile.

    A deadline created with ``timeout=None`` never expires.
    """

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout
        self._expires_at = None if timeout is None else time.monotonic() + timeout

    def remaining(self) -> float | None:
        """Seconds left before expiry, or None when unbounded."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0

    def check(self, operation: str) -> float | None:
        """Raise if the deadline has passed, else return the remaining seconds.

        Raises:
            DeadlineExceededError: If the deadline already expired
        """
        if self.expired():
            raise DeadlineExceededError(f"deadline of {self.timeout}s exceeded before {operation}")
        return self.remaining()
