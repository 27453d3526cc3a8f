"""Tests for base handler functionality."""

from __future__ import annotations

import json
import logging
from unittest.mock import MagicMock, patch

import pytest

from mysql_operator.handlers.base import BaseHandler

META = {"name": "db", "namespace": "prod", "uid": "u-1"}


class TestBaseHandler:
    """Test cases for BaseHandler class."""

    def test_init(self):
        handler = BaseHandler(kind="MySQL")

        assert handler.kind == "MySQL"
        assert handler.logger is not None

    def test_resource_context_defaults(self):
        handler = BaseHandler(kind="MySQL")

        ctx = handler._get_resource_context({})

        assert ctx == {"name": "unknown", "namespace": "default", "uid": "unknown"}


class TestStructuredLogging:
    """Test cases for the log helpers."""

    def test_log_info_is_json(self, caplog):
        handler = BaseHandler(kind="MySQL")

        with caplog.at_level(logging.INFO, logger=handler.logger.name):
            handler.log_info(META, "StatefulSet created", event="create", reason="StatefulSetCreated")

        record = caplog.records[-1]
        payload = json.loads(record.getMessage())
        assert record.levelno == logging.INFO
        assert payload["resource"] == "MySQL"
        assert payload["name"] == "db"
        assert payload["namespace"] == "prod"
        assert payload["reason"] == "StatefulSetCreated"
        assert payload["controller"] == "mysql-operator"

    def test_log_warning_level(self, caplog):
        handler = BaseHandler(kind="MySQL")

        with caplog.at_level(logging.INFO, logger=handler.logger.name):
            handler.log_warning(META, "invalid spec")

        assert caplog.records[-1].levelno == logging.WARNING

    def test_log_error_sanitizes_error(self, caplog):
        handler = BaseHandler(kind="MySQL")

        with caplog.at_level(logging.INFO, logger=handler.logger.name):
            handler.log_error(META, "write failed", error=RuntimeError("password: hunter2"))

        record = caplog.records[-1]
        payload = json.loads(record.getMessage())
        assert record.levelno == logging.ERROR
        assert payload["error_type"] == "RuntimeError"
        assert "hunter2" not in payload["error"]

    def test_secret_fields_redacted(self, caplog):
        handler = BaseHandler(kind="MySQL")

        with caplog.at_level(logging.INFO, logger=handler.logger.name):
            handler.log_info(META, "creds", password="hunter2")

        assert "hunter2" not in caplog.records[-1].getMessage()


class TestReconcileWithMetrics:
    """Test cases for reconcile_with_metrics."""

    @patch("mysql_operator.handlers.base.metrics")
    def test_success(self, mock_metrics):
        handler = BaseHandler(kind="MySQL")

        result = handler.reconcile_with_metrics(META, lambda: "done")

        assert result == "done"
        results = [call.kwargs["result"] for call in mock_metrics.reconcile_total.labels.call_args_list]
        assert results == ["started", "success"]
        mock_metrics.reconcile_duration_seconds.labels.assert_called_once_with(kind="MySQL")
        mock_metrics.error_total.labels.assert_not_called()

    @patch("mysql_operator.handlers.base.metrics")
    def test_error_is_counted_and_reraised(self, mock_metrics):
        handler = BaseHandler(kind="MySQL")
        reconcile_fn = MagicMock(side_effect=ValueError("boom"))

        with pytest.raises(ValueError):
            handler.reconcile_with_metrics(META, reconcile_fn)

        results = [call.kwargs["result"] for call in mock_metrics.reconcile_total.labels.call_args_list]
        assert results == ["started", "error"]
        mock_metrics.error_total.labels.assert_called_once_with(kind="MySQL", error_type="ValueError")
        mock_metrics.reconcile_duration_seconds.labels.assert_called_once_with(kind="MySQL")
