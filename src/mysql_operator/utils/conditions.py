"""Utilities for managing Kubernetes conditions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..constants import COND_INITIALIZED, COND_READY


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Update or add a condition to the conditions list.

    Args:
        conditions: List of existing conditions
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message
        observed_generation: Generation when condition was observed

    Returns:
        Updated list of conditions
    """
    now = datetime.now(timezone.utc).isoformat()

    # Find existing condition
    existing_idx = None
    for idx, cond in enumerate(conditions):
        if cond.get("type") == condition_type:
            existing_idx = idx
            break

    new_condition = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": now,
    }

    if observed_generation is not None:
        new_condition["observedGeneration"] = observed_generation

    if existing_idx is not None:
        existing = conditions[existing_idx]
        # Only update lastTransitionTime if status changed
        if existing.get("status") == status:
            new_condition["lastTransitionTime"] = existing.get("lastTransitionTime", now)
        conditions[existing_idx] = new_condition
    else:
        conditions.append(new_condition)

    return conditions


def set_initialized_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the Initialized condition."""
    return update_condition(
        conditions,
        COND_INITIALIZED,
        "True" if status else "False",
        "Initialized" if status else "Initializing",
        message,
        observed_generation,
    )


def set_ready_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the Ready condition."""
    return update_condition(
        conditions,
        COND_READY,
        "True" if status else "False",
        "Ready" if status else "NotReady",
        message,
        observed_generation,
    )


def get_condition(conditions: list[dict[str, Any]] | None, condition_type: str) -> dict[str, Any] | None:
    """Return the condition of the given type, or None."""
    for cond in conditions or []:
        if cond.get("type") == condition_type:
            return cond
    return None


def is_condition_true(conditions: list[dict[str, Any]] | None, condition_type: str) -> bool:
    """Check whether the condition of the given type has status "True".

    A missing condition counts as not true.
    """
    cond = get_condition(conditions, condition_type)
    return cond is not None and cond.get("status") == "True"


def is_cluster_initialized(conditions: list[dict[str, Any]] | None) -> bool:
    return is_condition_true(conditions, COND_INITIALIZED)


def is_cluster_ready(conditions: list[dict[str, Any]] | None) -> bool:
    return is_condition_true(conditions, COND_READY)


def conditions_equivalent(
    left: list[dict[str, Any]] | None,
    right: list[dict[str, Any]] | None,
) -> bool:
    """Compare two condition lists ignoring timestamps.

    Conditions are matched by type; type, status, reason and message must agree.
    """
    def _key(conditions: list[dict[str, Any]] | None) -> dict[str, tuple[Any, ...]]:
        return {
            cond.get("type"): (cond.get("status"), cond.get("reason"), cond.get("message"))
            for cond in conditions or []
        }

    return _key(left) == _key(right)
