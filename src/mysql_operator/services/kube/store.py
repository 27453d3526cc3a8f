"""Kubernetes API implementation of the object store."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import urllib3
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException

from ... import metrics
from ...constants import (
    API_GROUP,
    API_VERSION,
    FIELD_MANAGER,
    KIND_MYSQL,
    KIND_SERVICE,
    KIND_STATEFULSET,
    PLURAL_MYSQL,
)
from ...exceptions import ConflictError, NotFoundError, StoreError
from ...utils.deadline import Deadline
from ...utils.errors import sanitize_exception
from ...utils.rate_limit import handle_rate_limit_error, rate_limit_k8s

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30.0


def load_kube_config() -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


def translate_api_exception(e: ApiException, kind: str, namespace: str, name: str) -> Exception:
    """Map a Kubernetes API exception onto the operator's error taxonomy."""
    if e.status == 404:
        return NotFoundError(kind, namespace, name)
    if e.status == 409:
        return ConflictError(f"conflict writing {kind} {namespace}/{name}: {e.reason}", status=e.status)
    return StoreError(f"{kind} {namespace}/{name}: {e.status} {e.reason}", status=e.status)


class KubeStore:
    """Object store backed by the Kubernetes API.

    Safe for concurrent use from several worker threads: it holds no
    per-request state.
    """

    def __init__(
        self,
        custom_api: client.CustomObjectsApi | None = None,
        apps_api: client.AppsV1Api | None = None,
        core_api: client.CoreV1Api | None = None,
        api_client: client.ApiClient | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_rate_limit_retries: int = 3,
    ):
        self.api_client = api_client or client.ApiClient()
        self.custom_api = custom_api or client.CustomObjectsApi(self.api_client)
        self.apps_api = apps_api or client.AppsV1Api(self.api_client)
        self.core_api = core_api or client.CoreV1Api(self.api_client)
        self.request_timeout = request_timeout
        self.max_rate_limit_retries = max_rate_limit_retries

    @classmethod
    def from_environment(cls, request_timeout: float = DEFAULT_REQUEST_TIMEOUT) -> KubeStore:
        """Create a store from in-cluster or kubeconfig credentials."""
        load_kube_config()
        return cls(request_timeout=request_timeout)

    def _timeout(self, deadline: Deadline | None, operation: str) -> float:
        if deadline is None:
            return self.request_timeout
        remaining = deadline.check(operation)
        if remaining is None:
            return self.request_timeout
        return min(self.request_timeout, remaining)

    def _call(
        self,
        operation: str,
        kind: str,
        ident_ns: str,
        ident_name: str,
        fn: Callable[..., Any],
        deadline: Deadline | None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        attempt = 0
        while True:
            timeout = self._timeout(deadline, f"{operation} {kind} {ident_ns}/{ident_name}")
            start_time = time.time()
            try:
                result = rate_limit_k8s(fn)(_request_timeout=timeout, **kwargs)
                metrics.api_call_total.labels(api_type="k8s", operation=f"{operation}_{kind}", result="success").inc()
                return self.api_client.sanitize_for_serialization(result)
            except ApiException as e:
                if e.status == 404:
                    metrics.api_call_total.labels(api_type="k8s", operation=f"{operation}_{kind}", result="not_found").inc()
                else:
                    metrics.api_call_total.labels(api_type="k8s", operation=f"{operation}_{kind}", result="error").inc()
                if handle_rate_limit_error(e, attempt, self.max_rate_limit_retries, deadline):
                    attempt += 1
                    continue
                raise translate_api_exception(e, kind, ident_ns, ident_name) from e
            except urllib3.exceptions.HTTPError as e:
                metrics.api_call_total.labels(api_type="k8s", operation=f"{operation}_{kind}", result="error").inc()
                raise StoreError(
                    f"{operation} {kind} {ident_ns}/{ident_name} failed: {sanitize_exception(e)}"
                ) from e
            finally:
                duration = time.time() - start_time
                metrics.api_call_duration_seconds.labels(api_type="k8s", operation=f"{operation}_{kind}").observe(duration)

    @staticmethod
    def _identity(body: dict[str, Any]) -> tuple[str, str]:
        meta = body.get("metadata", {})
        return meta.get("namespace", "default"), meta["name"]

    def get(self, kind: str, namespace: str, name: str, deadline: Deadline | None = None) -> dict[str, Any]:
        if kind == KIND_MYSQL:
            return self._call(
                "get", kind, namespace, name, self.custom_api.get_namespaced_custom_object, deadline,
                group=API_GROUP, version=API_VERSION, namespace=namespace, plural=PLURAL_MYSQL, name=name,
            )
        if kind == KIND_STATEFULSET:
            return self._call(
                "get", kind, namespace, name, self.apps_api.read_namespaced_stateful_set, deadline,
                name=name, namespace=namespace,
            )
        if kind == KIND_SERVICE:
            return self._call(
                "get", kind, namespace, name, self.core_api.read_namespaced_service, deadline,
                name=name, namespace=namespace,
            )
        raise ValueError(f"unsupported kind {kind}")

    def create(self, kind: str, body: dict[str, Any], deadline: Deadline | None = None) -> dict[str, Any]:
        namespace, name = self._identity(body)
        if kind == KIND_MYSQL:
            return self._call(
                "create", kind, namespace, name, self.custom_api.create_namespaced_custom_object, deadline,
                group=API_GROUP, version=API_VERSION, namespace=namespace, plural=PLURAL_MYSQL, body=body,
                field_manager=FIELD_MANAGER,
            )
        if kind == KIND_STATEFULSET:
            return self._call(
                "create", kind, namespace, name, self.apps_api.create_namespaced_stateful_set, deadline,
                namespace=namespace, body=body, field_manager=FIELD_MANAGER,
            )
        if kind == KIND_SERVICE:
            return self._call(
                "create", kind, namespace, name, self.core_api.create_namespaced_service, deadline,
                namespace=namespace, body=body, field_manager=FIELD_MANAGER,
            )
        raise ValueError(f"unsupported kind {kind}")

    def update(self, kind: str, body: dict[str, Any], deadline: Deadline | None = None) -> dict[str, Any]:
        namespace, name = self._identity(body)
        if kind == KIND_MYSQL:
            return self._call(
                "update", kind, namespace, name, self.custom_api.replace_namespaced_custom_object, deadline,
                group=API_GROUP, version=API_VERSION, namespace=namespace, plural=PLURAL_MYSQL, name=name,
                body=body, field_manager=FIELD_MANAGER,
            )
        if kind == KIND_STATEFULSET:
            return self._call(
                "update", kind, namespace, name, self.apps_api.replace_namespaced_stateful_set, deadline,
                name=name, namespace=namespace, body=body, field_manager=FIELD_MANAGER,
            )
        if kind == KIND_SERVICE:
            return self._call(
                "update", kind, namespace, name, self.core_api.replace_namespaced_service, deadline,
                name=name, namespace=namespace, body=body, field_manager=FIELD_MANAGER,
            )
        raise ValueError(f"unsupported kind {kind}")

    def update_status(
        self,
        kind: str,
        body: dict[str, Any],
        status: dict[str, Any],
        deadline: Deadline | None = None,
    ) -> dict[str, Any]:
        if kind != KIND_MYSQL:
            raise ValueError(f"status updates are not supported for kind {kind}")

        namespace, name = self._identity(body)
        # The status subresource ignores spec changes; resourceVersion keeps the write conditional
        status_body = {
            "apiVersion": body.get("apiVersion"),
            "kind": body.get("kind"),
            "metadata": {
                "name": name,
                "namespace": namespace,
                "resourceVersion": body.get("metadata", {}).get("resourceVersion"),
            },
            "status": status,
        }
        return self._call(
            "update_status", kind, namespace, name,
            self.custom_api.replace_namespaced_custom_object_status, deadline,
            group=API_GROUP, version=API_VERSION, namespace=namespace, plural=PLURAL_MYSQL, name=name,
            body=status_body, field_manager=FIELD_MANAGER,
        )
