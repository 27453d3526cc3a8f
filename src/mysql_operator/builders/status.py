"""Derive MySQL status from the observed StatefulSet."""

from __future__ import annotations

import copy
from typing import Any, Protocol

from ..exceptions import StatusComputeError
from ..utils.conditions import (
    conditions_equivalent,
    set_initialized_condition,
    set_ready_condition,
)


class StatusComputer(Protocol):
    """Computes a new status, or None when nothing changed."""

    def __call__(self, cr: dict[str, Any], observed: dict[str, Any]) -> dict[str, Any] | None:
        ...


def _replica_counts(observed: dict[str, Any]) -> dict[str, int]:
    spec = observed.get("spec") or {}
    if spec.get("replicas") is None:
        name = observed.get("metadata", {}).get("name", "unknown")
        raise StatusComputeError(f"StatefulSet {name} has no spec.replicas")

    status = observed.get("status") or {}
    return {
        "desired": int(spec["replicas"]),
        "current": int(status.get("replicas") or 0),
        "ready": int(status.get("readyReplicas") or 0),
        "updated": int(status.get("updatedReplicas") or 0),
    }


def compute_mysql_status(cr: dict[str, Any], observed: dict[str, Any]) -> dict[str, Any] | None:
    """Compute the MySQL status from the live StatefulSet.

    The result depends only on the StatefulSet's visible state. The persisted
    status of ``cr`` is consulted to keep ``lastTransitionTime`` stable and to
    report "no change".

    Args:
        cr: MySQL resource body (its status is not modified)
        observed: Live StatefulSet body

    Returns:
        The full new status, or None if it equals the persisted one

    Raises:
        StatusComputeError: If the StatefulSet lacks the fields status is derived from
    """
    counts = _replica_counts(observed)
    desired = counts["desired"]

    generation = observed.get("metadata", {}).get("generation", 0)
    observed_generation = (observed.get("status") or {}).get("observedGeneration", 0)
    rollout_observed = observed_generation >= generation

    initialized = counts["current"] >= desired and counts["ready"] >= 1
    ready = (
        rollout_observed
        and counts["ready"] >= desired
        and counts["updated"] >= desired
    )

    if initialized:
        init_message = f"all {desired} replicas created"
    else:
        init_message = f"waiting for replicas: {counts['current']}/{desired} created, {counts['ready']} ready"

    if ready:
        ready_message = f"{counts['ready']}/{desired} replicas ready"
    elif not rollout_observed:
        ready_message = "waiting for StatefulSet controller to observe the latest generation"
    else:
        ready_message = (
            f"waiting for rollout: {counts['ready']}/{desired} replicas ready, "
            f"{counts['updated']}/{desired} updated"
        )

    old_status = cr.get("status") or {}
    conditions = copy.deepcopy(old_status.get("conditions") or [])
    conditions = set_initialized_condition(conditions, initialized, init_message)
    conditions = set_ready_condition(conditions, ready, ready_message)

    new_status = {
        "conditions": conditions,
        "observedGeneration": cr.get("metadata", {}).get("generation", 0),
        "replicas": counts["current"],
        "readyReplicas": counts["ready"],
    }

    unchanged = (
        conditions_equivalent(old_status.get("conditions"), conditions)
        and old_status.get("observedGeneration") == new_status["observedGeneration"]
        and old_status.get("replicas") == new_status["replicas"]
        and old_status.get("readyReplicas") == new_status["readyReplicas"]
    )
    if unchanged:
        return None
    return new_status
