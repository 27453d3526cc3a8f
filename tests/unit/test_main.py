"""Tests for the kopf entry points."""

from __future__ import annotations

import gc
from unittest.mock import MagicMock

import kopf
import pytest

from mysql_operator import main
from mysql_operator.exceptions import ConflictError, DeadlineExceededError
from mysql_operator.handlers.mysql import IdentityLocks, ResourceIdentity, owner_identity
from mysql_operator.utils.deadline import Deadline

OWNER_REF = {
    "apiVersion": "database.cloud37.dev/v1",
    "kind": "MySQL",
    "name": "db",
    "uid": "uid-db",
    "controller": True,
    "blockOwnerDeletion": True,
}


def owned(ref: dict | None = None) -> dict:
    return {
        "metadata": {
            "name": "db-mysql",
            "namespace": "prod",
            "ownerReferences": [ref or OWNER_REF],
        }
    }


@pytest.fixture
def reconciler():
    mock = MagicMock()
    main.set_reconciler(mock)
    yield mock
    main.set_reconciler(None)


class TestReconcileIdentity:
    """Test cases for reconcile_identity."""

    def test_reconciles_with_deadline(self, reconciler):
        main.reconcile_identity(ResourceIdentity("prod", "db"))

        args = reconciler.reconcile.call_args.args
        assert args[:2] == ("prod", "db")
        assert isinstance(args[2], Deadline)
        assert args[2].timeout == main.RECONCILE_TIMEOUT_SECONDS

    def test_store_error_becomes_temporary_error(self, reconciler):
        reconciler.reconcile.side_effect = ConflictError("stale resourceVersion", status=409)

        with pytest.raises(kopf.TemporaryError) as exc_info:
            main.reconcile_identity(ResourceIdentity("prod", "db"))

        assert exc_info.value.delay == main.RETRY_DELAY_SECONDS

    def test_deadline_exceeded_is_retried(self, reconciler):
        reconciler.reconcile.side_effect = DeadlineExceededError("deadline exceeded")

        with pytest.raises(kopf.TemporaryError):
            main.reconcile_identity(ResourceIdentity("prod", "db"))

    def test_other_errors_propagate(self, reconciler):
        reconciler.reconcile.side_effect = ValueError("bug")

        with pytest.raises(ValueError):
            main.reconcile_identity(ResourceIdentity("prod", "db"))


class TestPrimaryHandlers:
    """Test cases for the MySQL watch handlers."""

    def test_handle_mysql(self, reconciler):
        main.handle_mysql(meta={"name": "db", "namespace": "prod"})

        assert reconciler.reconcile.call_args.args[:2] == ("prod", "db")

    def test_deleted_event_reconciles(self, reconciler):
        main.handle_mysql_deleted(event={"type": "DELETED"}, meta={"name": "db", "namespace": "prod"})

        reconciler.reconcile.assert_called_once()

    @pytest.mark.parametrize("event_type", ["ADDED", "MODIFIED", None])
    def test_other_events_ignored(self, reconciler, event_type):
        main.handle_mysql_deleted(event={"type": event_type}, meta={"name": "db", "namespace": "prod"})

        reconciler.reconcile.assert_not_called()


class TestOwnedHandlers:
    """Test cases for the StatefulSet and Service watches."""

    def test_owned_statefulset_reconciles_owner(self, reconciler):
        main.handle_owned_statefulset(body=owned())

        assert reconciler.reconcile.call_args.args[:2] == ("prod", "db")

    def test_owned_service_reconciles_owner(self, reconciler):
        main.handle_owned_service(body=owned())

        assert reconciler.reconcile.call_args.args[:2] == ("prod", "db")

    def test_unowned_object_ignored(self, reconciler):
        main.handle_owned_service(body={"metadata": {"name": "other", "namespace": "prod"}})

        reconciler.reconcile.assert_not_called()

    def test_temporary_error_is_not_raised(self, reconciler):
        reconciler.reconcile.side_effect = ConflictError("conflict", status=409)

        main.handle_owned_statefulset(body=owned())

        reconciler.reconcile.assert_called_once()


class TestOwnerIdentity:
    """Test cases for owner_identity."""

    def test_controller_reference(self):
        assert owner_identity(owned()) == ResourceIdentity("prod", "db")

    def test_non_controller_reference(self):
        assert owner_identity(owned({**OWNER_REF, "controller": False})) is None

    def test_other_kind(self):
        assert owner_identity(owned({**OWNER_REF, "kind": "Deployment", "apiVersion": "apps/v1"})) is None

    def test_other_group(self):
        assert owner_identity(owned({**OWNER_REF, "apiVersion": "mysql.example.com/v1"})) is None

    def test_no_references(self):
        assert owner_identity({"metadata": {"name": "x"}}) is None


class TestIdentityLocks:
    """Test cases for IdentityLocks."""

    def test_same_identity_same_lock(self):
        locks = IdentityLocks()

        assert locks.lock_for(ResourceIdentity("prod", "db")) is locks.lock_for(ResourceIdentity("prod", "db"))

    def test_different_identities(self):
        locks = IdentityLocks()

        assert locks.lock_for(ResourceIdentity("prod", "db")) is not locks.lock_for(ResourceIdentity("dev", "db"))

    def test_lock_dropped_when_released(self):
        locks = IdentityLocks()
        lock = locks.lock_for(ResourceIdentity("prod", "db"))
        assert len(locks) == 1

        del lock
        gc.collect()

        assert len(locks) == 0

    def test_lock_kept_while_held(self, reconciler):
        seen = []
        reconciler.reconcile.side_effect = lambda *args: seen.append(len(main._locks))

        main.reconcile_identity(ResourceIdentity("prod", "db"))

        assert seen == [1]
