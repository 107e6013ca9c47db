from __future__ import annotations

import hashlib
import re
from typing import Any, Dict

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
# Phone-like numbers: optional country code, separators, at least 9 digits overall.
PHONE_RE = re.compile(r"\+?\d[\d\s().-]{7,}\d")
# Spanish DNI (8 digits + letter) and NIE (X/Y/Z + 7 digits + letter).
DNI_RE = re.compile(r"\b(?:\d{8}|[XYZxyz]\d{7})-?[A-Za-z]\b")
IBAN_RE = re.compile(r"\bES\d{2}(?:\s?\d{4}){5}\b")

# Keys that should never be logged verbatim.
SENSITIVE_FIELDS = {
    "dni",
    "email",
    "phone",
    "current_address",
    "notes",
    "contract_notes",
    "pdf",
    "pdf_bytes",
    "pdf_base64",
    "document",
    "images",
}


def _hash_token(text: str) -> str:
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]
    return f"[HASH:{digest}]"


def scrub_text(text: str) -> str:
    """Redact or hash obvious PII tokens (emails, IBANs, DNI/NIE, phones) from free text."""
    if not text:
        return text

    def _replace(match: re.Match, label: str) -> str:
        return f"[{label}_{_hash_token(match.group(0))}]"

    scrubbed = EMAIL_RE.sub(lambda m: _replace(m, "EMAIL"), text)
    scrubbed = IBAN_RE.sub(lambda m: _replace(m, "IBAN"), scrubbed)
    scrubbed = DNI_RE.sub(lambda m: _replace(m, "ID"), scrubbed)
    scrubbed = PHONE_RE.sub(lambda m: _replace(m, "PHONE"), scrubbed)
    return scrubbed


def _summarize(value: Any) -> Dict[str, Any]:
    length = len(value) if hasattr(value, "__len__") else None
    return {"redacted": True, "items": length}


def _is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    if lowered in SENSITIVE_FIELDS:
        return True
    return lowered.endswith("_bytes") or lowered.startswith("raw_")


def scrub_value(value: Any) -> Any:
    """Scrub a generic value for PII before logging."""
    if isinstance(value, (bytes, bytearray)):
        return _summarize(value)
    if isinstance(value, str):
        cleaned = scrub_text(value)
        if len(cleaned) > 500:
            return _hash_token(cleaned)
        return cleaned
    if isinstance(value, dict):
        return sanitize_log_payload(value)
    if isinstance(value, (list, tuple)):
        return [scrub_value(item) for item in value]
    return value


def sanitize_log_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Strip or hash PII-heavy fields from a log payload."""
    if not isinstance(payload, dict):
        return {}

    cleaned: Dict[str, Any] = {}
    for key, value in payload.items():
        if value is None:
            cleaned[key] = value
        elif _is_sensitive_key(str(key)):
            cleaned[key] = _summarize(value)
        else:
            cleaned[key] = scrub_value(value)
    return cleaned
