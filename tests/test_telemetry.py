import json
import logging

import pytest

from telemetry import retry as retry_module
from telemetry.logging_utils import JsonFormatter
from telemetry.pii import sanitize_log_payload, scrub_text
from telemetry.retry import retry_with_backoff


def test_scrub_text_hides_identifiers():
    text = "Ana (ana@example.com, 612 345 678, DNI 12345678Z, NIE X1234567L)"
    scrubbed = scrub_text(text)
    for secret in ("ana@example.com", "612 345 678", "12345678Z", "X1234567L"):
        assert secret not in scrubbed
    assert "[EMAIL_" in scrubbed and "[ID_" in scrubbed and "[PHONE_" in scrubbed


def test_sanitize_payload_summarizes_sensitive_fields():
    cleaned = sanitize_log_payload(
        {"dni": "12345678Z", "pdf_bytes": b"%PDF-1.4", "tenant_id": "t1", "count": 3, "notes": None}
    )
    assert cleaned["dni"] == {"redacted": True, "items": 9}
    assert cleaned["pdf_bytes"]["redacted"] is True
    assert cleaned["tenant_id"] == "t1"
    assert cleaned["count"] == 3
    assert cleaned["notes"] is None


def test_json_formatter_emits_event_and_extras():
    record = logging.LogRecord("rentals.test", logging.INFO, __file__, 1, "contract_generated", None, None)
    record.tenant_id = "t1"
    record.email = "ana@example.com"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["event"] == "contract_generated"
    assert payload["service"] == "rental-manager"
    assert payload["tenant_id"] == "t1"
    assert payload["email"]["redacted"] is True


def test_retry_with_backoff_retries_then_succeeds(monkeypatch):
    monkeypatch.setattr(retry_module.time, "sleep", lambda _: None)
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise ConnectionError("reset")
        return "ok"

    assert retry_with_backoff(flaky, retries=3, retry_exceptions=(ConnectionError,)) == "ok"
    assert len(calls) == 3


def test_retry_with_backoff_gives_up(monkeypatch):
    monkeypatch.setattr(retry_module.time, "sleep", lambda _: None)

    def always_fails():
        raise ConnectionError("down")

    with pytest.raises(ConnectionError):
        retry_with_backoff(always_fails, retries=2, retry_exceptions=(ConnectionError,))


def test_retry_does_not_catch_other_errors(monkeypatch):
    monkeypatch.setattr(retry_module.time, "sleep", lambda _: None)
    calls = []

    def broken():
        calls.append(1)
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        retry_with_backoff(broken, retry_exceptions=(ConnectionError,))
    assert len(calls) == 1
