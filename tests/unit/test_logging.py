"""Unit tests for the structlog processors in shared.logging."""

import pytest
import structlog

from shared.logging import (
    add_timestamp,
    get_logger,
    log_with_context,
    redact_sensitive_fields,
    setup_logging,
)


@pytest.mark.parametrize(
    "key",
    ["secret", "secret_hash", "credential", "key", "answer", "answer_to_captcha", "client_secret"],
)
def test_sensitive_fields_redacted(key):
    event = redact_sensitive_fields(None, "info", {"event": "x", key: "value"})
    assert event[key] == "***REDACTED***"


@pytest.mark.parametrize(
    "key",
    ["token_id", "captcha_id", "owner_id", "client_id", "success", "attempt"],
)
def test_identifiers_not_redacted(key):
    event = redact_sensitive_fields(None, "info", {"event": "x", key: "value"})
    assert event[key] == "value"


def test_event_name_preserved():
    event = redact_sensitive_fields(None, "info", {"event": "token_activated"})
    assert event["event"] == "token_activated"


def test_add_timestamp():
    event = add_timestamp(None, "info", {"event": "x"})
    assert "T" in event["timestamp"]
    assert event["timestamp"].endswith("+00:00")


def test_setup_logging_json_keeps_event_fields():
    setup_logging(log_level="INFO", log_format="json")
    try:
        with structlog.testing.capture_logs() as captured:
            get_logger("test").info("client_registered", client_id="c1")
        assert captured[0]["event"] == "client_registered"
        assert captured[0]["client_id"] == "c1"
    finally:
        structlog.reset_defaults()


def test_log_with_context_binds_fields():
    with structlog.testing.capture_logs() as captured:
        bound = log_with_context(get_logger("test"), token_id="t1")
        bound.info("token_created")
    assert captured[0]["token_id"] == "t1"
