"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any, Protocol

import kopf

from .. import metrics
from ..constants import (
    EVENT_REASON_STS_CREATE_FAILED,
    EVENT_REASON_STS_CREATED,
    EVENT_TYPE_NORMAL,
    EVENT_TYPE_WARNING,
)


class EventSink(Protocol):
    """Protocol for an append-only event sink."""

    def record(self, obj: dict[str, Any], type_: str, reason: str, message: str) -> None:
        """Record an event against the given object."""
        ...


def emit_event(
    obj: dict[str, Any],
    reason: str,
    message: str,
    type_: str = EVENT_TYPE_NORMAL,
) -> None:
    """Emit a Kubernetes event.

    Args:
        obj: Resource body (apiVersion, kind and metadata are used)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        obj,
        reason=reason,
        message=message,
        type=type_,
    )


class EventRecorder:
    """Event sink that posts Kubernetes events through kopf."""

    def record(self, obj: dict[str, Any], type_: str, reason: str, message: str) -> None:
        emit_event(obj, reason, message, type_=type_)
        metrics.events_emitted_total.labels(type=type_, reason=reason).inc()


def emit_statefulset_created(recorder: EventSink, obj: dict[str, Any], sts_name: str) -> None:
    """Emit statefulset created event."""
    recorder.record(obj, EVENT_TYPE_NORMAL, EVENT_REASON_STS_CREATED, f"Create new StatefulSet {sts_name}")


def emit_statefulset_create_failed(recorder: EventSink, obj: dict[str, Any], message: str) -> None:
    """Emit statefulset create failed event."""
    recorder.record(obj, EVENT_TYPE_WARNING, EVENT_REASON_STS_CREATE_FAILED, message)
