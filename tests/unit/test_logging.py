"""Tests for structured logging functionality.

Tests logging configuration, context binding and the custom processors.
"""

import logging
import os

import pytest
import structlog

from credit_store.logging_config import (
    REDACTED,
    add_service_context,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    level_filter,
    mask_phone,
    redact_sensitive_fields,
)


@pytest.fixture(scope="module")
def setup_logging():
    """Configure logging for all tests in this module."""
    log_level = os.getenv("LOG_LEVEL", "INFO")
    log_format = os.getenv("LOG_FORMAT", "console")
    configure_logging(log_level=log_level, json_format=log_format.lower() == "json")
    yield


@pytest.fixture(autouse=True)
def cleanup_context():
    """Ensure context is cleared before and after each test."""
    clear_context()
    yield
    clear_context()


class TestBasicLogging:
    """Test basic logging at different levels."""

    def test_info_logging(self, setup_logging):
        logger = get_logger("test.basic")
        logger.info("store_started", version="0.1.0", environment="test")

    def test_warning_logging(self, setup_logging):
        logger = get_logger("test.basic")
        logger.warning("unauthorized_operation", user_id="user-1", operation="approve purchases")

    def test_error_logging_with_traceback(self, setup_logging):
        logger = get_logger("test.basic")
        try:
            _ = {"a": 1}["b"]
        except KeyError as e:
            logger.error("lookup_failed", error=str(e), exc_info=True)

    def test_sensitive_fields_logged(self, setup_logging):
        logger = get_logger("test.basic")
        logger.info("relay_configured", phone="+15551234567", api_key="secret")


class TestContextBinding:
    """Test request-scoped context variables."""

    def test_bind_context(self):
        bind_context(request_id="req-1", user_id="user-1")

        assert structlog.contextvars.get_contextvars() == {"request_id": "req-1", "user_id": "user-1"}

    def test_bind_context_merges(self):
        bind_context(request_id="req-1")
        bind_context(purchase_id="store_purchase_x")

        assert structlog.contextvars.get_contextvars() == {
            "request_id": "req-1",
            "purchase_id": "store_purchase_x",
        }

    def test_clear_context(self):
        bind_context(request_id="req-1")

        clear_context()

        assert structlog.contextvars.get_contextvars() == {}


class TestProcessors:
    """Test the custom structlog processors."""

    def test_service_context(self):
        assert add_service_context(None, "info", {"event": "x"})["service"] == "credit-store"

    def test_service_context_not_overwritten(self):
        assert add_service_context(None, "info", {"service": "worker"})["service"] == "worker"

    @pytest.mark.parametrize("raw,masked", [
        ("+15551234567", "*********567"),
        ("+4412345", "*****345"),
        ("123", "123"),
    ])
    def test_mask_phone(self, raw, masked):
        assert mask_phone(raw) == masked

    def test_phone_fields_masked(self):
        event = redact_sensitive_fields(None, "info", {"phone": "+15551234567", "phone_number": "+4412345"})
        assert event == {"phone": "*********567", "phone_number": "*****345"}

    def test_secrets_redacted(self):
        event = redact_sensitive_fields(None, "info", {"api_key": "abc", "authorization": "Bearer abc"})
        assert event == {"api_key": REDACTED, "authorization": REDACTED}

    def test_other_fields_untouched(self):
        event = redact_sensitive_fields(None, "info", {"user_id": "user-1", "api_key": None})
        assert event == {"user_id": "user-1", "api_key": None}

    def test_level_filter_drops_below_minimum(self):
        with pytest.raises(structlog.DropEvent):
            level_filter(logging.INFO)(None, "debug", {"event": "noise"})

    def test_level_filter_passes_minimum_and_above(self):
        processor = level_filter(logging.WARNING)
        assert processor(None, "warning", {"event": "x"}) == {"event": "x"}
        assert processor(None, "exception", {"event": "y"}) == {"event": "y"}

    def test_debug_level_keeps_everything(self):
        assert level_filter(logging.DEBUG)(None, "debug", {"event": "detail"}) == {"event": "detail"}


@pytest.mark.parametrize("level", ["debug", "info", "warning", "error"])
def test_log_levels(setup_logging, level):
    """Logging at every level does not raise."""
    logger = get_logger("test.parametrized")
    getattr(logger, level)("test_message", level_name=level)
