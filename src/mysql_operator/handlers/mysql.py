"""Reconciler for the MySQL CRD."""

from __future__ import annotations

import copy
import threading
import weakref
from typing import Any, NamedTuple

import kopf

from .. import metrics
from ..builders.mysql import Builder, build_mysql_resources
from ..builders.status import StatusComputer, compute_mysql_status
from ..constants import (
    API_GROUP,
    COND_READY,
    EVENT_REASON_CLUSTER_INITIALIZED,
    EVENT_REASON_CLUSTER_NOT_READY,
    EVENT_REASON_CLUSTER_READY,
    EVENT_TYPE_NORMAL,
    EVENT_TYPE_WARNING,
    KIND_MYSQL,
    KIND_SERVICE,
    KIND_STATEFULSET,
)
from ..exceptions import BuildError, NotFoundError, StatusComputeError, StoreError
from ..services.kube.base import ObjectStore
from ..tracing import trace_span
from ..utils.conditions import get_condition, is_cluster_initialized, is_cluster_ready
from ..utils.context import with_correlation_id
from ..utils.deadline import Deadline
from ..utils.diff import drifted_fields, semantic_equal
from ..utils.errors import sanitize_exception
from ..utils.events import (
    EventSink,
    emit_statefulset_create_failed,
    emit_statefulset_created,
)
from .base import BaseHandler


class ResourceIdentity(NamedTuple):
    namespace: str
    name: str


class ConditionTransition(NamedTuple):
    type_: str
    reason: str
    message: str


def detect_condition_transitions(
    old_conditions: list[dict[str, Any]] | None,
    new_conditions: list[dict[str, Any]] | None,
) -> list[ConditionTransition]:
    """List the events owed for the change from old to new conditions.

    Only value transitions produce events:
    Initialized False->True and Ready False->True are Normal,
    Ready True->False is a Warning carrying the condition message.
    A condition missing from ``old_conditions`` counts as False.
    """
    transitions: list[ConditionTransition] = []

    if not is_cluster_initialized(old_conditions) and is_cluster_initialized(new_conditions):
        transitions.append(ConditionTransition(EVENT_TYPE_NORMAL, EVENT_REASON_CLUSTER_INITIALIZED, "init cluster succeed"))

    if not is_cluster_ready(old_conditions):
        if is_cluster_ready(new_conditions):
            transitions.append(ConditionTransition(EVENT_TYPE_NORMAL, EVENT_REASON_CLUSTER_READY, "cluster is ready"))
    elif not is_cluster_ready(new_conditions):
        cond = get_condition(new_conditions, COND_READY)
        if cond is not None:
            transitions.append(
                ConditionTransition(EVENT_TYPE_WARNING, EVENT_REASON_CLUSTER_NOT_READY, cond.get("message", ""))
            )

    return transitions


def owner_identity(body: dict[str, Any]) -> ResourceIdentity | None:
    """Resolve the MySQL resource controlling a child object, if any."""
    meta = body.get("metadata", {})
    for ref in meta.get("ownerReferences") or []:
        if not ref.get("controller"):
            continue
        if ref.get("kind") != KIND_MYSQL:
            continue
        if not str(ref.get("apiVersion", "")).startswith(f"{API_GROUP}/"):
            continue
        return ResourceIdentity(meta.get("namespace", "default"), ref["name"])
    return None


class IdentityLocks:
    """One lock per resource identity.

    kopf serializes handlers per object, but the primary and secondary
    watches are different objects that map to the same identity. Entries
    are weak: a lock is dropped once no reconcile holds a reference to it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[ResourceIdentity, threading.Lock] = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def lock_for(self, identity: ResourceIdentity) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(identity)
            if lock is None:
                lock = self._locks[identity] = threading.Lock()
            return lock


class MySQLReconciler(BaseHandler):
    """Drives a MySQL resource towards its StatefulSet and Service.

    Holds no state about previous reconciles: every call re-reads the
    resource and recomputes the desired children.
    """

    def __init__(
        self,
        store: ObjectStore,
        recorder: EventSink,
        builder: Builder = build_mysql_resources,
        status_computer: StatusComputer = compute_mysql_status,
    ):
        super().__init__(KIND_MYSQL)
        self.store = store
        self.recorder = recorder
        self.builder = builder
        self.status_computer = status_computer

    def reconcile(self, namespace: str, name: str, deadline: Deadline | None = None) -> None:
        """Reconcile one MySQL identity.

        Raises:
            StoreError: On retryable store failures
        """
        meta = {"namespace": namespace, "name": name}
        with with_correlation_id(), trace_span("reconcile_mysql", kind=KIND_MYSQL, attributes={"mysql.name": name}):
            self.reconcile_with_metrics(meta, lambda: self._reconcile(namespace, name, deadline or Deadline()))

    def _reconcile(self, namespace: str, name: str, deadline: Deadline) -> None:
        try:
            cr = self.store.get(KIND_MYSQL, namespace, name, deadline)
        except NotFoundError:
            # Deleted: children are garbage collected through their owner references
            self.log_info({"namespace": namespace, "name": name}, "MySQL not found, nothing to do", reason="NotFound")
            return

        meta = cr.get("metadata", {})
        self.log_info(meta, "Reconciling MySQL", reason="Reconciling")

        try:
            sts, svc = self.builder(copy.deepcopy(cr))
        except BuildError as e:
            error_msg = sanitize_exception(e)
            self.log_warning(meta, f"Cannot build MySQL resources: {error_msg}", reason="BuildFailed")
            emit_statefulset_create_failed(self.recorder, cr, error_msg)
            metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
            return

        if svc is not None:
            kopf.append_owner_reference(svc, owner=cr)
            with trace_span("reconcile_service", kind=KIND_SERVICE):
                self._reconcile_service(meta, svc, deadline)

        kopf.append_owner_reference(sts, owner=cr)
        sts_meta = sts["metadata"]

        try:
            found = self.store.get(KIND_STATEFULSET, sts_meta["namespace"], sts_meta["name"], deadline)
        except NotFoundError:
            self.log_info(meta, f"Creating a new StatefulSet {sts_meta['name']}", reason="StatefulSetCreate",
                          statefulset=sts_meta["name"])
            self._write_child("create", KIND_STATEFULSET, sts, deadline)
            emit_statefulset_created(self.recorder, cr, sts_meta["name"])
            # Status follows from the StatefulSet's own watch event
            return

        status_error: StoreError | None = None
        try:
            status = self.status_computer(cr, copy.deepcopy(found))
        except StatusComputeError as e:
            self.log_error(meta, "Get MySQL status error", error=e, reason="StatusComputeFailed")
            metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
            status = None

        if status is not None:
            try:
                self._update_status_with_events(cr, status, deadline)
            except StoreError as e:
                self.log_error(meta, "Update MySQL status error", error=e, reason="StatusUpdateFailed")
                status_error = e

        with trace_span("reconcile_statefulset", kind=KIND_STATEFULSET):
            self._reconcile_statefulset(meta, sts, found, deadline)

        if status_error is not None:
            raise status_error

    def _write_child(self, operation: str, kind: str, body: dict[str, Any], deadline: Deadline) -> dict[str, Any]:
        writer = self.store.create if operation == "create" else self.store.update
        try:
            result = writer(kind, body, deadline)
        except StoreError:
            metrics.child_operations_total.labels(kind=kind, operation=operation, result="failed").inc()
            raise
        metrics.child_operations_total.labels(kind=kind, operation=operation, result="success").inc()
        return result

    def _reconcile_service(self, meta: dict[str, Any], svc: dict[str, Any], deadline: Deadline) -> None:
        svc_meta = svc["metadata"]
        try:
            found = self.store.get(KIND_SERVICE, svc_meta["namespace"], svc_meta["name"], deadline)
        except NotFoundError:
            self.log_info(meta, f"Creating MySQL service {svc_meta['name']}", reason="ServiceCreate",
                          service=svc_meta["name"])
            self._write_child("create", KIND_SERVICE, svc, deadline)
            return

        if semantic_equal(svc, found):
            return

        self.log_info(meta, f"Drift detected: service {svc_meta['name']}", reason="DriftDetected",
                      service=svc_meta["name"], fields=drifted_fields(svc, found))
        metrics.drift_detected_total.labels(kind=KIND_SERVICE, resource_type="spec").inc()

        # Keep server-assigned fields such as clusterIP and nodePorts' allocation
        updated = copy.deepcopy(found)
        updated["spec"] = {**found.get("spec", {}), **svc["spec"]}
        updated_meta = updated.setdefault("metadata", {})
        updated_meta["labels"] = {**(updated_meta.get("labels") or {}), **svc_meta.get("labels", {})}
        updated_meta["ownerReferences"] = svc_meta.get("ownerReferences", [])
        self._write_child("update", KIND_SERVICE, updated, deadline)

    def _reconcile_statefulset(
        self,
        meta: dict[str, Any],
        sts: dict[str, Any],
        found: dict[str, Any],
        deadline: Deadline,
    ) -> None:
        if semantic_equal(sts, found):
            return

        sts_name = sts["metadata"]["name"]
        self.log_info(meta, f"Update Old StatefulSet {sts_name}", reason="DriftDetected",
                      statefulset=sts_name, fields=drifted_fields(sts, found))
        metrics.drift_detected_total.labels(kind=KIND_STATEFULSET, resource_type="spec").inc()

        desired = copy.deepcopy(sts)
        resource_version = found.get("metadata", {}).get("resourceVersion")
        if resource_version:
            desired["metadata"]["resourceVersion"] = resource_version
        try:
            self._write_child("update", KIND_STATEFULSET, desired, deadline)
        except StoreError as e:
            self.log_error(meta, "Update StatefulSet error", error=e, reason="StatefulSetUpdateFailed",
                           statefulset=sts_name)
            raise

    def _update_status_with_events(self, cr: dict[str, Any], status: dict[str, Any], deadline: Deadline) -> None:
        old_conditions = (cr.get("status") or {}).get("conditions")
        for transition in detect_condition_transitions(old_conditions, status.get("conditions")):
            self.recorder.record(cr, transition.type_, transition.reason, transition.message)

        ready = is_cluster_ready(status.get("conditions"))
        metrics.resource_status_total.labels(kind=self.kind, status="ready" if ready else "not_ready").inc()

        try:
            self.store.update_status(KIND_MYSQL, cr, status, deadline)
        except StoreError:
            metrics.status_updates_total.labels(kind=self.kind, result="failed").inc()
            raise
        metrics.status_updates_total.labels(kind=self.kind, result="success").inc()
