"""Rate limiting utilities for API calls."""

from __future__ import annotations

import os
import threading
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from kubernetes.client.exceptions import ApiException

from .. import metrics
from .deadline import Deadline

_F = TypeVar("_F", bound=Callable[..., Any])

# Rate limit configuration
_K8S_RATE_LIMIT_PER_SECOND = float(os.getenv("K8S_RATE_LIMIT_PER_SECOND", "10.0"))

# Track last call time; shared by all worker threads
_k8s_last_call_time: float = 0.0
_k8s_lock = threading.Lock()


def rate_limit_k8s(func: _F) -> _F:
    """Decorator to rate limit Kubernetes API calls.

    Implements a simple token bucket-like rate limiter to prevent overwhelming
    the Kubernetes API server.
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        global _k8s_last_call_time
        with _k8s_lock:
            current_time = time.time()
            min_interval = 1.0 / _K8S_RATE_LIMIT_PER_SECOND

            time_since_last_call = current_time - _k8s_last_call_time
            if time_since_last_call < min_interval:
                time.sleep(min_interval - time_since_last_call)

            _k8s_last_call_time = time.time()
        return func(*args, **kwargs)

    return wrapper  # type: ignore


def is_rate_limit_error(e: Exception) -> bool:
    """Kubernetes API rate limit errors typically return 429 or 503."""
    if not isinstance(e, ApiException):
        return False
    return e.status == 429 or (e.status == 503 and "rate limit" in str(e).lower())


def handle_rate_limit_error(
    e: Exception,
    attempt: int,
    max_retries: int = 3,
    deadline: Deadline | None = None,
) -> bool:
    """Check if an API exception is a rate limit error and back off before a retry.

    Args:
        e: Exception raised by the API call
        attempt: Number of retries already made for this call
        max_retries: Maximum number of retries
        deadline: Reconcile deadline; the backoff never sleeps past it

    Returns:
        True if the caller should retry, False otherwise
    """
    if not is_rate_limit_error(e):
        return False

    metrics.rate_limit_hits_total.labels(api_type="k8s").inc()
    if attempt >= max_retries:
        return False

    # Exponential backoff: 1s, 2s, 4s, capped by the deadline
    delay = 2 ** attempt
    remaining = deadline.remaining() if deadline is not None else None
    if remaining is not None:
        delay = min(delay, remaining)
    time.sleep(delay)
    return True
