"""Unit tests for the structured logging helpers in ``observability``."""

from __future__ import annotations

import logging

import pytest

from lib_scoped_config import bind_trace_id, get_logger
from lib_scoped_config.observability import LOG_LEVELS, TRACE_ID, attach_stderr_handler, log_info, make_event


def test_null_handler_present() -> None:
    """Package logger should always include a NullHandler to avoid surprises."""

    logger = get_logger()
    assert any(isinstance(handler, logging.NullHandler) for handler in logger.handlers)


def test_trace_id_in_log(caplog: pytest.LogCaptureFixture) -> None:
    """Structured logs should include the bound trace identifier and contextual fields."""

    caplog.set_level(logging.INFO, logger="lib_scoped_config")
    bind_trace_id("trace-123")
    log_info("value_set", layer="local", path="anvil.yaml")
    bind_trace_id(None)
    assert caplog.records
    record = caplog.records[-1]
    assert getattr(record, "context") == {"trace_id": "trace-123", "layer": "local", "path": "anvil.yaml"}


def test_bind_trace_id_clears_context() -> None:
    bind_trace_id("trace-temp")
    bind_trace_id(None)
    assert TRACE_ID.get() is None


def test_make_event_merges_optional_payload() -> None:
    event = make_event("environment", None, {"keys": 3})
    assert event == {"layer": "environment", "path": None, "keys": 3}


def test_log_levels_cover_setting_values() -> None:
    assert set(LOG_LEVELS) == {"disabled", "debug", "info", "warn", "error"}
    assert LOG_LEVELS["warn"] == logging.WARNING


def test_attach_stderr_handler() -> None:
    assert attach_stderr_handler("disabled") is None
    handler = attach_stderr_handler("error")
    try:
        assert handler is not None
        assert handler.level == logging.ERROR
        assert handler in get_logger().handlers
    finally:
        get_logger().removeHandler(handler)
