"""Tests for logging utilities and sensitive data redaction."""

from __future__ import annotations

import json
import logging

import pytest

from packwise.logging_utils import configure_logging


def _emit(msg: str, *args: object) -> str:
    handler = logging.getLogger().handlers[0]
    record = logging.LogRecord(
        name="packwise.test.redaction",
        level=logging.INFO,
        pathname=__file__,
        lineno=0,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for filter_ in handler.filters:
        filter_.filter(record)
    return handler.format(record)


@pytest.mark.parametrize("fmt", ["plain", "json"])
def test_sensitive_data_filter_redacts_tokens(fmt):
    secret = "top-secret-token"
    configure_logging("INFO", fmt, [secret])

    formatted = _emit("Authorization header Bearer %s", secret)

    assert secret not in formatted
    assert "[redacted]" in formatted


def test_groq_style_keys_are_masked_without_being_configured():
    configure_logging("INFO", "plain", [])

    formatted = _emit("calling model with key %s", "gsk_abcdefgh12345678")

    assert "gsk_abcdefgh12345678" not in formatted
    assert "[redacted]" in formatted


def test_json_format_emits_structured_payload():
    configure_logging("DEBUG", "json", [])

    payload = json.loads(_emit("hello %s", "world"))

    assert payload["message"] == "hello world"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "packwise.test.redaction"
    assert logging.getLogger().level == logging.DEBUG
