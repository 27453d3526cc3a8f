"""Unit tests for condition utilities."""

from __future__ import annotations

from mysql_operator.utils.conditions import (
    conditions_equivalent,
    get_condition,
    is_cluster_initialized,
    is_cluster_ready,
    set_initialized_condition,
    set_ready_condition,
    update_condition,
)


class TestConditions:
    """Test condition utilities."""

    def test_update_condition_new(self) -> None:
        """Test adding a new condition."""
        conditions = []
        result = update_condition(
            conditions, "TestCondition", "True", "TestReason", "Test message", observed_generation=1
        )

        assert len(result) == 1
        assert result[0]["type"] == "TestCondition"
        assert result[0]["status"] == "True"
        assert result[0]["reason"] == "TestReason"
        assert result[0]["message"] == "Test message"
        assert result[0]["observedGeneration"] == 1

    def test_update_condition_existing(self) -> None:
        """Test updating an existing condition replaces it in place."""
        conditions = [
            {
                "type": "TestCondition",
                "status": "False",
                "reason": "OldReason",
                "message": "Old message",
                "lastTransitionTime": "2023-01-01T00:00:00Z",
            }
        ]

        result = update_condition(conditions, "TestCondition", "True", "NewReason", "New message")

        assert len(result) == 1
        assert result[0]["status"] == "True"
        assert result[0]["reason"] == "NewReason"
        assert result[0]["lastTransitionTime"] != "2023-01-01T00:00:00Z"

    def test_update_condition_keeps_transition_time(self) -> None:
        """Test lastTransitionTime is kept when status does not change."""
        conditions = [
            {
                "type": "Ready",
                "status": "False",
                "reason": "NotReady",
                "message": "0/1 ready",
                "lastTransitionTime": "2023-01-01T00:00:00Z",
            }
        ]

        result = set_ready_condition(conditions, False, "still waiting")

        assert result[0]["message"] == "still waiting"
        assert result[0]["lastTransitionTime"] == "2023-01-01T00:00:00Z"

    def test_one_condition_per_type(self) -> None:
        conditions = []
        conditions = set_ready_condition(conditions, False, "a")
        conditions = set_ready_condition(conditions, True, "b")
        conditions = set_initialized_condition(conditions, True, "c")

        assert [c["type"] for c in conditions] == ["Ready", "Initialized"]

    def test_set_initialized_condition(self) -> None:
        result = set_initialized_condition([], True, "created")

        assert result[0]["type"] == "Initialized"
        assert result[0]["reason"] == "Initialized"
        assert is_cluster_initialized(result)

    def test_ready_helpers(self) -> None:
        conditions = set_ready_condition([], True, "ready")

        assert is_cluster_ready(conditions)
        assert not is_cluster_initialized(conditions)
        assert not is_cluster_ready(None)
        assert get_condition(conditions, "Missing") is None

    def test_conditions_equivalent_ignores_timestamps(self) -> None:
        left = [{"type": "Ready", "status": "True", "reason": "Ready", "message": "m", "lastTransitionTime": "t1"}]
        right = [{"type": "Ready", "status": "True", "reason": "Ready", "message": "m", "lastTransitionTime": "t2"}]

        assert conditions_equivalent(left, right)
        assert not conditions_equivalent(left, [])
