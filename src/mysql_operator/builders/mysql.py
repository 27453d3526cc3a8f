"""Builder for MySQL child resources (StatefulSet and Service)."""

from __future__ import annotations

from typing import Any, Protocol

from ..constants import (
    CONTROLLER_NAME,
    DEFAULT_IMAGE,
    DEFAULT_PASSWORD_KEY,
    DEFAULT_PORT,
    DEFAULT_SERVICE_TYPE,
    DEFAULT_STORAGE_SIZE,
    LABEL_INSTANCE,
    LABEL_MANAGED_BY,
    LABEL_NAME,
    TOPOLOGY_GROUP_REPLICATION,
    TOPOLOGY_REPLICATION,
    TOPOLOGY_STANDALONE,
)
from ..exceptions import BuildError

SERVICE_TYPES = {"ClusterIP", "NodePort", "LoadBalancer"}
DATA_VOLUME = "data"
DATA_MOUNT_PATH = "/var/lib/mysql"


class Builder(Protocol):
    """Turns a MySQL resource into its desired child definitions."""

    def __call__(self, cr: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any] | None]:
        ...


def instance_labels(name: str) -> dict[str, str]:
    """Labels put on every child of the named MySQL instance."""
    return {
        LABEL_NAME: "mysql",
        LABEL_INSTANCE: name,
        LABEL_MANAGED_BY: CONTROLLER_NAME,
    }


def service_name_for(name: str) -> str:
    return f"{name}-mysql"


def _section(spec: dict[str, Any], field: str) -> dict[str, Any]:
    """Return an optional mapping section of the spec.

    Raises:
        BuildError: If the section is set to something other than a mapping
    """
    value = spec.get(field)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise BuildError(f"{field} must be a mapping, got {type(value).__name__}")
    return value


def validate_topology(topology: str, replicas: Any) -> None:
    """Reject replica counts the topology cannot run with.

    Raises:
        BuildError: If the combination is impossible
    """
    if isinstance(replicas, bool) or not isinstance(replicas, int):
        raise BuildError(f"replicas must be an integer, got {replicas!r}")
    if replicas < 1:
        raise BuildError(f"replicas must be at least 1, got {replicas}")

    if topology == TOPOLOGY_STANDALONE:
        if replicas != 1:
            raise BuildError(f"{TOPOLOGY_STANDALONE} topology requires exactly 1 replica, got {replicas}")
    elif topology == TOPOLOGY_REPLICATION:
        if replicas < 2:
            raise BuildError(f"{TOPOLOGY_REPLICATION} topology requires at least 2 replicas, got {replicas}")
    elif topology == TOPOLOGY_GROUP_REPLICATION:
        if replicas < 3 or replicas > 9 or replicas % 2 == 0:
            raise BuildError(
                f"{TOPOLOGY_GROUP_REPLICATION} topology requires an odd number of replicas "
                f"between 3 and 9, got {replicas}"
            )
    else:
        raise BuildError(f"unknown topology {topology!r}")


def _container_env(spec: dict[str, Any], topology: str) -> list[dict[str, Any]]:
    env: list[dict[str, Any]] = [{"name": "MYSQL_TOPOLOGY", "value": topology}]

    secret_ref = _section(spec, "rootPasswordSecretRef")
    if secret_ref:
        secret_name = secret_ref.get("name")
        if not secret_name:
            raise BuildError("rootPasswordSecretRef.name is required when rootPasswordSecretRef is set")
        env.append({
            "name": "MYSQL_ROOT_PASSWORD",
            "valueFrom": {
                "secretKeyRef": {
                    "name": secret_name,
                    "key": secret_ref.get("key", DEFAULT_PASSWORD_KEY),
                },
            },
        })
    else:
        env.append({"name": "MYSQL_ALLOW_EMPTY_PASSWORD", "value": "yes"})

    return env


def create_statefulset_from_spec(
    name: str,
    namespace: str,
    spec: dict[str, Any],
) -> dict[str, Any]:
    """Create the StatefulSet definition for a MySQL spec.

    Args:
        name: MySQL resource name
        namespace: MySQL resource namespace
        spec: MySQL CRD spec

    Returns:
        StatefulSet body

    Raises:
        BuildError: If the spec is invalid
    """
    topology = spec.get("topology", TOPOLOGY_STANDALONE)
    replicas = spec.get("replicas", 1)
    validate_topology(topology, replicas)

    image = spec.get("image", DEFAULT_IMAGE)
    if not image:
        raise BuildError("image must not be empty")

    port = spec.get("port", DEFAULT_PORT)
    if isinstance(port, bool) or not isinstance(port, int) or not 1 <= port <= 65535:
        raise BuildError(f"port must be an integer between 1 and 65535, got {port!r}")

    storage = _section(spec, "storage")
    labels = instance_labels(name)

    container: dict[str, Any] = {
        "name": "mysql",
        "image": image,
        "ports": [{"name": "mysql", "containerPort": port, "protocol": "TCP"}],
        "env": _container_env(spec, topology),
        "volumeMounts": [{"name": DATA_VOLUME, "mountPath": DATA_MOUNT_PATH}],
        "readinessProbe": {
            "tcpSocket": {"port": port},
            "initialDelaySeconds": 10,
            "periodSeconds": 10,
        },
    }
    resources = _section(spec, "resources")
    if resources:
        container["resources"] = resources

    pvc_spec: dict[str, Any] = {
        "accessModes": ["ReadWriteOnce"],
        "resources": {"requests": {"storage": storage.get("size", DEFAULT_STORAGE_SIZE)}},
    }
    if storage.get("storageClassName"):
        pvc_spec["storageClassName"] = storage["storageClassName"]

    return {
        "apiVersion": "apps/v1",
        "kind": "StatefulSet",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "labels": dict(labels),
        },
        "spec": {
            "replicas": replicas,
            "serviceName": service_name_for(name),
            "selector": {"matchLabels": dict(labels)},
            "template": {
                "metadata": {"labels": dict(labels)},
                "spec": {"containers": [container]},
            },
            "volumeClaimTemplates": [
                {
                    "metadata": {"name": DATA_VOLUME},
                    "spec": pvc_spec,
                },
            ],
        },
    }


def create_service_from_spec(
    name: str,
    namespace: str,
    spec: dict[str, Any],
) -> dict[str, Any] | None:
    """Create the access Service definition, or None when disabled.

    Raises:
        BuildError: If the service type is unknown
    """
    service = _section(spec, "service")
    if not service.get("enabled", True):
        return None

    service_type = service.get("type", DEFAULT_SERVICE_TYPE)
    if service_type not in SERVICE_TYPES:
        raise BuildError(f"unsupported service type {service_type!r}")

    port = spec.get("port", DEFAULT_PORT)
    labels = instance_labels(name)

    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {
            "name": service_name_for(name),
            "namespace": namespace,
            "labels": dict(labels),
        },
        "spec": {
            "type": service_type,
            "selector": dict(labels),
            "ports": [
                {
                    "name": "mysql",
                    "port": port,
                    "targetPort": port,
                    "protocol": "TCP",
                },
            ],
        },
    }


def build_mysql_resources(cr: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any] | None]:
    """Build the desired StatefulSet and optional Service for a MySQL resource.

    Pure: performs no I/O and depends only on the resource passed in.

    Args:
        cr: MySQL resource body

    Returns:
        Tuple of (statefulset, service or None)

    Raises:
        BuildError: If the spec is unsatisfiable
    """
    meta = cr.get("metadata", {})
    name = meta.get("name")
    namespace = meta.get("namespace", "default")
    if not name:
        raise BuildError("metadata.name is required")

    spec = cr.get("spec") or {}
    if not isinstance(spec, dict):
        raise BuildError(f"spec must be a mapping, got {type(spec).__name__}")
    sts = create_statefulset_from_spec(name, namespace, spec)
    svc = create_service_from_spec(name, namespace, spec)
    return sts, svc
