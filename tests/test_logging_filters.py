"""Tests for log scrubbing: redaction of secrets and hashing of identifiers."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from bizplan.core.logging import (
    REDACTED,
    JsonFormatter,
    RecordScrubber,
    ScrubbingFilter,
    hash_identifier,
)


@pytest.fixture
def capture():
    """Logger wired like production: a scrubbing filter and the JSON formatter."""

    logger = logging.getLogger("test_scrubbing")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    scrubber = RecordScrubber()
    handler = logging.StreamHandler(stream)
    handler.addFilter(ScrubbingFilter(scrubber))
    handler.setFormatter(JsonFormatter(scrubber=scrubber))
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()


def _payload(stream: StringIO) -> dict:
    return json.loads(stream.getvalue().strip().splitlines()[-1])


def test_redacts_api_keys(capture):
    logger, stream = capture

    logger.info(
        "test_event",
        extra={
            "api_key": "sk-secret-123",
            "x-api-key": "another-secret",
            "groq_api_key": "gsk-third",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()
    assert "sk-secret-123" not in output
    assert "another-secret" not in output
    assert "gsk-third" not in output
    assert _payload(stream)["api_key"] == REDACTED
    assert "visible" in output


def test_redacts_user_content(capture):
    logger, stream = capture

    logger.info(
        "feedback_event",
        extra={
            "feedback_text": "John Doe here, the plans are great",
            "user_email": "john@example.com",
            "access_token": "eyJhbGciOi.secret",
            "char_count": 100,
        },
    )

    output = stream.getvalue()
    assert "John Doe" not in output
    assert "john@example.com" not in output
    assert "eyJhbGciOi" not in output
    assert _payload(stream)["char_count"] == 100


def test_safe_fields_pass_through(capture):
    logger, stream = capture

    logger.info(
        "safe_event",
        extra={
            "request_id": "req-123",
            "route": "/v1/plans/generate",
            "status": 200,
            "duration_ms": 150.5,
        },
    )

    payload = _payload(stream)
    assert payload["request_id"] == "req-123"
    assert payload["route"] == "/v1/plans/generate"
    assert payload["status"] == 200
    assert REDACTED not in stream.getvalue()


def test_redacts_nested_dicts(capture):
    logger, stream = capture

    logger.info(
        "nested_event",
        extra={
            "headers": {"x-api-key": "secret-key", "user-agent": "pytest"},
            "rows": [{"email": "a@example.com", "count": 5}],
        },
    )

    payload = _payload(stream)
    assert payload["headers"] == {"x-api-key": REDACTED, "user-agent": "pytest"}
    assert payload["rows"] == [{"email": REDACTED, "count": 5}]


def test_user_and_profile_ids_are_hashed(capture):
    logger, stream = capture

    logger.info(
        "usage_event",
        extra={"user_id": "user-123", "context": {"profile_id": 42}},
    )

    output = stream.getvalue()
    payload = _payload(stream)
    assert "user-123" not in output
    assert payload["user_id"] == hash_identifier("user-123")
    assert payload["context"] == {"profile_id": hash_identifier(42)}


def test_identifiers_are_hashed_once_with_filter_and_formatter(capture):
    logger, stream = capture

    logger.info("first", extra={"user_id": "user-123"})
    logger.info("second", extra={"user_id": "user-123"})

    lines = [json.loads(line) for line in stream.getvalue().strip().splitlines()]
    assert [line["user_id"] for line in lines] == [hash_identifier("user-123")] * 2
    assert "_bizplan_scrubbed" not in stream.getvalue()


def test_formatter_alone_still_scrubs():
    formatter = JsonFormatter()
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "event", None, None)
    record.user_id = "user-123"
    record.token = "secret-token"

    payload = json.loads(formatter.format(record))

    assert payload["user_id"] == hash_identifier("user-123")
    assert payload["token"] == REDACTED


def test_missing_identifier_stays_null(capture):
    logger, stream = capture

    logger.info("anonymous_event", extra={"user_id": None})

    assert _payload(stream)["user_id"] is None


def test_hash_identifier_is_short_and_stable():
    assert hash_identifier("user-123") == hash_identifier("user-123")
    assert hash_identifier("user-123") != hash_identifier("user-456")
    assert len(hash_identifier("user-123")) == 16
    assert hash_identifier(42) == hash_identifier("42")
