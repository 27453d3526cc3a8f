"""Main entry point for the MySQL Operator."""

from __future__ import annotations

import logging
import os
import threading
from typing import Any

import kopf
from werkzeug.serving import make_server

from . import health
from . import logging as structured_logging
from .constants import API_GROUP, API_VERSION, LABEL_MANAGED_BY, CONTROLLER_NAME, PLURAL_MYSQL
from .exceptions import StoreError
from .handlers.mysql import IdentityLocks, MySQLReconciler, ResourceIdentity, owner_identity
from .services.kube.store import KubeStore
from .tracing import initialize_tracing
from .utils.deadline import Deadline
from .utils.events import EventRecorder

logger = logging.getLogger(__name__)

RECONCILE_TIMEOUT_SECONDS = float(os.getenv("RECONCILE_TIMEOUT_SECONDS", "60"))
RETRY_DELAY_SECONDS = float(os.getenv("RETRY_DELAY_SECONDS", "10"))
DRIFT_CHECK_INTERVAL_SECONDS = int(os.getenv("DRIFT_CHECK_INTERVAL_SECONDS", "300"))

_reconciler: MySQLReconciler | None = None
_reconciler_guard = threading.Lock()
_locks = IdentityLocks()


def get_reconciler() -> MySQLReconciler:
    """Return the process-wide reconciler, creating it on first use."""
    global _reconciler
    with _reconciler_guard:
        if _reconciler is None:
            store = KubeStore.from_environment(request_timeout=RECONCILE_TIMEOUT_SECONDS)
            _reconciler = MySQLReconciler(store, EventRecorder())
        return _reconciler


def set_reconciler(reconciler: MySQLReconciler | None) -> None:
    """Replace the process-wide reconciler (None resets it)."""
    global _reconciler
    with _reconciler_guard:
        _reconciler = reconciler


def reconcile_identity(identity: ResourceIdentity) -> None:
    """Run one reconcile for an identity, translating errors for kopf.

    Raises:
        kopf.TemporaryError: On retryable store errors
    """
    reconciler = get_reconciler()
    with _locks.lock_for(identity):
        try:
            reconciler.reconcile(identity.namespace, identity.name, Deadline(RECONCILE_TIMEOUT_SECONDS))
        except StoreError as e:
            raise kopf.TemporaryError(str(e), delay=RETRY_DELAY_SECONDS) from e


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    # Set up structured JSON logging
    structured_logging.setup_structured_logging()
    initialize_tracing()

    # Use AnnotationsProgressStorage to avoid conflicts with status updates
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = int(os.getenv("MAX_WORKERS", "4"))

    # Start metrics HTTP server with health check endpoints
    metrics_port = int(os.getenv("METRICS_PORT", "8080"))
    combined_app = health.create_combined_wsgi_app()
    server = make_server("", metrics_port, combined_app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    health.mark_ready()


@kopf.on.cleanup()
def shutdown(**_: Any) -> None:
    """Report not-ready while the operator stops."""
    health.mark_not_ready()


@kopf.on.create(API_GROUP, API_VERSION, PLURAL_MYSQL)
@kopf.on.update(API_GROUP, API_VERSION, PLURAL_MYSQL)
@kopf.on.resume(API_GROUP, API_VERSION, PLURAL_MYSQL)
@kopf.timer(API_GROUP, API_VERSION, PLURAL_MYSQL, interval=DRIFT_CHECK_INTERVAL_SECONDS)
def handle_mysql(
    meta: dict[str, Any],
    **kwargs: Any,
) -> None:
    """Handle MySQL resource reconciliation."""
    reconcile_identity(ResourceIdentity(meta.get("namespace", "default"), meta["name"]))


@kopf.on.event(API_GROUP, API_VERSION, PLURAL_MYSQL)
def handle_mysql_deleted(
    event: dict[str, Any],
    meta: dict[str, Any],
    **kwargs: Any,
) -> None:
    """Deliver deletions of MySQL resources; the reconcile sees NotFound."""
    if event.get("type") != "DELETED":
        return
    reconcile_identity(ResourceIdentity(meta.get("namespace", "default"), meta["name"]))


def _handle_owned_event(body: dict[str, Any]) -> None:
    identity = owner_identity(body)
    if identity is None:
        return
    try:
        reconcile_identity(identity)
    except kopf.TemporaryError as e:
        # Event handlers are not retried; the resync timer picks this up
        logger.warning(f"Reconcile of {identity.namespace}/{identity.name} failed, will resync: {e}")


@kopf.on.event("apps", "v1", "statefulsets", labels={LABEL_MANAGED_BY: CONTROLLER_NAME})
def handle_owned_statefulset(body: dict[str, Any], **kwargs: Any) -> None:
    """Reconcile the owning MySQL when its StatefulSet changes."""
    _handle_owned_event(body)


@kopf.on.event("v1", "services", labels={LABEL_MANAGED_BY: CONTROLLER_NAME})
def handle_owned_service(body: dict[str, Any], **kwargs: Any) -> None:
    """Reconcile the owning MySQL when its Service changes."""
    _handle_owned_event(body)
