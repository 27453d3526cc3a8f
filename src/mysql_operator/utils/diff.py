"""Semantic comparison of desired and observed Kubernetes objects.

The API server defaults many fields on write (``clusterIP``,
``revisionHistoryLimit``, ``terminationMessagePath`` ...). Comparing whole
objects would report drift on every pass, so desired objects are compared as
a subset of what the server returned.
"""

from __future__ import annotations

from typing import Any

from kubernetes.utils import parse_quantity

# Top-level sections compared for each child kind
_COMPARED_SECTIONS = ("spec",)
_COMPARED_METADATA = ("labels", "annotations")

# Maps holding resource quantities, which the server returns in canonical form
_QUANTITY_MAPS = ("requests", "limits")


def quantities_equal(desired: Any, observed: Any) -> bool:
    """Compare two resource quantities by value, so ``1024Mi`` equals ``1Gi``."""
    try:
        return parse_quantity(desired) == parse_quantity(observed)
    except (ValueError, TypeError):
        return desired == observed


def is_subset(desired: Any, observed: Any, quantities: bool = False) -> bool:
    """Check that every value set in ``desired`` is present and equal in ``observed``.

    Dicts are compared key by key, recursing into values. Lists must have the
    same length and match element-wise. A desired ``None`` matches a missing
    key, since the server drops null fields. Values under ``requests`` and
    ``limits`` are compared as resource quantities.
    """
    if isinstance(desired, dict):
        if not isinstance(observed, dict):
            return False
        for key, value in desired.items():
            if value is None:
                if observed.get(key) is not None:
                    return False
                continue
            if key not in observed:
                return False
            if not is_subset(value, observed[key], quantities or key in _QUANTITY_MAPS):
                return False
        return True

    if isinstance(desired, list):
        if not isinstance(observed, list) or len(desired) != len(observed):
            return False
        return all(is_subset(d, o, quantities) for d, o in zip(desired, observed))

    if quantities:
        return quantities_equal(desired, observed)
    return desired == observed


def semantic_equal(desired: dict[str, Any], observed: dict[str, Any]) -> bool:
    """Compare a desired child definition with its live counterpart.

    Only the spec and the labels/annotations the operator sets are compared;
    store-managed metadata (uid, resourceVersion, generation, managedFields)
    and the status subresource are ignored.
    """
    for section in _COMPARED_SECTIONS:
        if not is_subset(desired.get(section, {}), observed.get(section, {})):
            return False

    desired_meta = desired.get("metadata", {})
    observed_meta = observed.get("metadata", {})
    for field in _COMPARED_METADATA:
        if not is_subset(desired_meta.get(field) or {}, observed_meta.get(field) or {}):
            return False

    return True


def drifted_fields(desired: dict[str, Any], observed: dict[str, Any]) -> list[str]:
    """Return the top-level spec keys whose desired value is not reflected in observed."""
    desired_spec = desired.get("spec", {})
    observed_spec = observed.get("spec", {})
    return sorted(
        key for key, value in desired_spec.items()
        if not is_subset({key: value}, observed_spec)
    )
