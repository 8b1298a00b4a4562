from __future__ import annotations

import hashlib
import re
from typing import Any, Dict

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
# Phone-like numbers: optional country code, separators, at least 9 digits overall.
PHONE_RE = re.compile(r"\+?\d[\d\s().-]{8,}\d")
GOV_ID_RE = re.compile(r"\b\d{3}-\d{2}-\d{4}\b")
# Three base64url segments, the shape of a signed auth token.
JWT_RE = re.compile(r"\beyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")

MAX_LOGGED_STRING = 500

# Keys whose values are never logged verbatim.
SENSITIVE_FIELDS = {
    "password",
    "password_hash",
    "token",
    "authorization",
    "jwt_secret",
    "api_key",
    "prompt",
    "raw_prompt",
    "raw_completion",
    "completion",
    "chunk",
    "chunk_text",
    "document_text",
    "pdf_text",
    "lease_text",
    "summary",
    "issues",
}


def _hash_token(text: str) -> str:
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]
    return f"[HASH:{digest}]"


def scrub_text(text: str) -> str:
    """Redact or hash obvious PII and credentials in free text."""
    if not text:
        return text

    def _replace(match: re.Match, label: str) -> str:
        return f"[{label}_{_hash_token(match.group(0))}]"

    scrubbed = JWT_RE.sub(lambda m: _replace(m, "TOKEN"), text)
    scrubbed = EMAIL_RE.sub(lambda m: _replace(m, "EMAIL"), scrubbed)
    scrubbed = PHONE_RE.sub(lambda m: _replace(m, "PHONE"), scrubbed)
    scrubbed = GOV_ID_RE.sub(lambda m: _replace(m, "ID"), scrubbed)
    return scrubbed


def _summarize_value(value: Any) -> Dict[str, Any]:
    length = len(value) if hasattr(value, "__len__") else None
    return {"redacted": True, "length": length}


def _is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    if lowered in SENSITIVE_FIELDS:
        return True
    if "secret" in lowered or "password" in lowered:
        return True
    if ("lease" in lowered or "pdf" in lowered) and ("text" in lowered or "content" in lowered):
        return True
    return False


def scrub_value(value: Any) -> Any:
    """Scrub a generic value for PII before logging."""
    if isinstance(value, str):
        cleaned = scrub_text(value)
        if len(cleaned) > MAX_LOGGED_STRING:
            return _hash_token(cleaned)
        return cleaned
    if isinstance(value, dict):
        return sanitize_log_payload(value)
    if isinstance(value, list):
        return [scrub_value(item) for item in value]
    if isinstance(value, tuple):
        return tuple(scrub_value(item) for item in value)
    return value


def sanitize_log_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Strip or hash sensitive fields from a log payload."""
    if not isinstance(payload, dict):
        return {}

    cleaned: Dict[str, Any] = {}
    for key, value in payload.items():
        if value is None:
            cleaned[key] = value
        elif _is_sensitive_key(str(key)):
            cleaned[key] = _summarize_value(value)
        else:
            cleaned[key] = scrub_value(value)
    return cleaned
