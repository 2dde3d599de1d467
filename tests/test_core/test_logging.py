"""Tests for logging configuration."""

import logging

import pytest
import structlog
from structlog.stdlib import BoundLogger
from structlog.testing import capture_logs
from structlog.types import BindableLogger

from marker_import.core.logging import (
    AUDIT_LOGGER_NAME,
    configure_logging,
    get_audit_logger,
    get_logger,
    get_run_logger,
)


@pytest.fixture(autouse=True)
def restore_test_logging():
    """Put the test logging configuration back after each test."""
    yield
    structlog.reset_defaults()
    configure_logging(testing=True)


def test_configure_logging_json() -> None:
    """Test production configuration renders JSON through stdlib handlers."""
    configure_logging()

    app_logger = logging.getLogger("marker_import")
    assert len(app_logger.handlers) == 1
    assert app_logger.propagate is False

    formatter = app_logger.handlers[0].formatter
    assert isinstance(formatter, structlog.stdlib.ProcessorFormatter)
    assert formatter.processors[-1].__class__.__name__ == "JSONRenderer"
    assert structlog.get_config()["cache_logger_on_first_use"] is True


def test_configure_logging_testing() -> None:
    """Test test-mode configuration uses the console renderer and no caching."""
    configure_logging(testing=True, level="debug")

    app_logger = logging.getLogger("marker_import")
    formatter = app_logger.handlers[0].formatter
    assert formatter.processors[-1].__class__.__name__ == "ConsoleRenderer"
    assert app_logger.level == logging.DEBUG
    assert structlog.get_config()["cache_logger_on_first_use"] is False


def test_configure_logging_unknown_level_defaults_to_info() -> None:
    configure_logging(testing=True, level="chatty")

    assert logging.getLogger("marker_import").level == logging.INFO


def test_get_logger() -> None:
    """Test get_logger returns a configured logger."""
    logger = get_logger(__name__)
    assert isinstance(logger, BoundLogger | BindableLogger)


def test_get_run_logger_binds_context() -> None:
    """Test run loggers carry run, account and map identifiers."""
    with capture_logs() as logs:
        get_run_logger("run-1", account_id="acct", map_id="map").info("hello")

    assert logs == [
        {
            "run_id": "run-1",
            "account_id": "acct",
            "map_id": "map",
            "event": "hello",
            "log_level": "info",
        }
    ]


def test_get_run_logger_omits_missing_ids() -> None:
    with capture_logs() as logs:
        get_run_logger("run-2").info("hello")

    assert "account_id" not in logs[0]
    assert "map_id" not in logs[0]


def test_audit_logger_uses_dedicated_channel() -> None:
    """Test audit events are tagged with the audit channel."""
    with capture_logs() as logs:
        get_audit_logger().warning("geocoding_denied", address="1 Main St")

    assert logs[0]["channel"] == "audit"
    assert logs[0]["log_level"] == "warning"
    assert AUDIT_LOGGER_NAME == "marker_import.audit"
