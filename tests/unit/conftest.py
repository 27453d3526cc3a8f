"""Shared fixtures: an in-memory object store and event recorder."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from mysql_operator.constants import API_GROUP_VERSION, KIND_MYSQL
from mysql_operator.exceptions import ConflictError, NotFoundError, StoreError

WRITE_OPERATIONS = ("create", "update", "update_status")


class FakeStore:
    """In-memory object store with resourceVersion conflict checks."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, str, str, str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self._version = 0

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    @staticmethod
    def _key(kind: str, body: dict[str, Any]) -> tuple[str, str, str]:
        meta = body["metadata"]
        return kind, meta.get("namespace", "default"), meta["name"]

    def _maybe_fail(self, operation: str, kind: str) -> None:
        error = self.failures.get((operation, kind))
        if error is not None:
            raise error

    def add(self, kind: str, body: dict[str, Any]) -> dict[str, Any]:
        """Seed an object without recording a call."""
        stored = copy.deepcopy(body)
        meta = stored.setdefault("metadata", {})
        meta.setdefault("namespace", "default")
        meta.setdefault("uid", f"uid-{meta['name']}")
        meta.setdefault("generation", 1)
        meta["resourceVersion"] = self._next_version()
        self.objects[self._key(kind, stored)] = stored
        return copy.deepcopy(stored)

    def find(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        return self.objects.get((kind, namespace, name))

    def set_status(self, kind: str, namespace: str, name: str, status: dict[str, Any]) -> None:
        """Simulate a controller writing status on an object."""
        obj = self.objects[(kind, namespace, name)]
        obj["status"] = copy.deepcopy(status)
        obj["metadata"]["resourceVersion"] = self._next_version()

    def mutate_spec(self, kind: str, namespace: str, name: str, **changes: Any) -> None:
        """Simulate an external actor editing an object's spec."""
        obj = self.objects[(kind, namespace, name)]
        obj["spec"].update(copy.deepcopy(changes))
        obj["metadata"]["generation"] += 1
        obj["metadata"]["resourceVersion"] = self._next_version()

    def delete(self, kind: str, namespace: str, name: str) -> None:
        del self.objects[(kind, namespace, name)]

    @property
    def writes(self) -> list[tuple[str, str, str, str]]:
        return [call for call in self.calls if call[0] in WRITE_OPERATIONS]

    def writes_of(self, operation: str, kind: str | None = None) -> list[tuple[str, str, str, str]]:
        return [
            call for call in self.writes
            if call[0] == operation and (kind is None or call[1] == kind)
        ]

    def get(self, kind: str, namespace: str, name: str, deadline: Any = None) -> dict[str, Any]:
        self.calls.append(("get", kind, namespace, name))
        self._maybe_fail("get", kind)
        obj = self.objects.get((kind, namespace, name))
        if obj is None:
            raise NotFoundError(kind, namespace, name)
        return copy.deepcopy(obj)

    def create(self, kind: str, body: dict[str, Any], deadline: Any = None) -> dict[str, Any]:
        key = self._key(kind, body)
        self.calls.append(("create",) + key)
        self._maybe_fail("create", kind)
        if key in self.objects:
            raise ConflictError(f"{kind} {key[1]}/{key[2]} already exists", status=409)
        return self.add(kind, body)

    def update(self, kind: str, body: dict[str, Any], deadline: Any = None) -> dict[str, Any]:
        key = self._key(kind, body)
        self.calls.append(("update",) + key)
        self._maybe_fail("update", kind)
        existing = self.objects.get(key)
        if existing is None:
            raise NotFoundError(*key)
        version = body["metadata"].get("resourceVersion")
        if version and version != existing["metadata"]["resourceVersion"]:
            raise ConflictError(f"{kind} {key[1]}/{key[2]} was modified", status=409)

        stored = copy.deepcopy(body)
        meta = stored["metadata"]
        meta["uid"] = existing["metadata"]["uid"]
        meta["generation"] = existing["metadata"]["generation"]
        if stored.get("spec") != existing.get("spec"):
            meta["generation"] += 1
        meta["resourceVersion"] = self._next_version()
        if "status" in existing:
            stored["status"] = existing["status"]
        else:
            stored.pop("status", None)
        self.objects[key] = stored
        return copy.deepcopy(stored)

    def update_status(
        self,
        kind: str,
        body: dict[str, Any],
        status: dict[str, Any],
        deadline: Any = None,
    ) -> dict[str, Any]:
        key = self._key(kind, body)
        self.calls.append(("update_status",) + key)
        self._maybe_fail("update_status", kind)
        existing = self.objects.get(key)
        if existing is None:
            raise NotFoundError(*key)
        version = body["metadata"].get("resourceVersion")
        if version and version != existing["metadata"]["resourceVersion"]:
            raise ConflictError(f"{kind} {key[1]}/{key[2]} was modified", status=409)
        existing["status"] = copy.deepcopy(status)
        existing["metadata"]["resourceVersion"] = self._next_version()
        return copy.deepcopy(existing)


class FakeRecorder:
    """Event sink that keeps every recorded event."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, str]] = []

    def record(self, obj: dict[str, Any], type_: str, reason: str, message: str) -> None:
        self.events.append((type_, reason, message))

    def reasons(self) -> list[str]:
        return [reason for _, reason, _ in self.events]


def make_mysql(name: str = "demo", namespace: str = "default", **spec: Any) -> dict[str, Any]:
    """Build a MySQL resource body."""
    return {
        "apiVersion": API_GROUP_VERSION,
        "kind": KIND_MYSQL,
        "metadata": {
            "name": name,
            "namespace": namespace,
            "uid": f"uid-{name}",
            "generation": 1,
        },
        "spec": spec,
    }


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def recorder() -> FakeRecorder:
    return FakeRecorder()


@pytest.fixture
def mysql_factory():
    return make_mysql


@pytest.fixture
def store_error() -> StoreError:
    return StoreError("connection refused", status=None)
