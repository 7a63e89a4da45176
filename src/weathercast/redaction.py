"""Helpers for redacting API keys from logs and error messages."""

from __future__ import annotations

import re
from typing import Any

REDACTED = "[REDACTED]"

_SENSITIVE_KEY_RE = re.compile(
    r"(authorization|token|secret|appid|api[_-]?key)",
    re.IGNORECASE,
)
_AUTH_TOKEN_INLINE_RE = re.compile(
    r"(?i)\b(bearer)\s+[A-Za-z0-9\-._~+/]+=*",
)
_QUERY_KEY_RE = re.compile(r"(?i)\b(appid|api[_-]?key|token)=([^&\s]+)")
_HEADER_SECRET_RE = re.compile(
    r"""(?ix)
    \b
    (authorization|apikey|x-api-key|secret)
    \s*:\s*
    ([^\s,;]+)
    """
)


def sanitize_text(text: str) -> str:
    """Redact API keys embedded in plain text (URLs, headers, tokens)."""
    sanitized = _AUTH_TOKEN_INLINE_RE.sub(r"\1 " + REDACTED, text)
    sanitized = _QUERY_KEY_RE.sub(lambda m: f"{m.group(1)}={REDACTED}", sanitized)
    sanitized = _HEADER_SECRET_RE.sub(lambda m: f"{m.group(1)}: {REDACTED}", sanitized)
    return sanitized


def sanitize_for_logging(value: Any) -> Any:
    """Recursively redact sensitive values in nested structures."""
    if isinstance(value, dict):
        return {
            key: REDACTED if _SENSITIVE_KEY_RE.search(str(key)) else sanitize_for_logging(child)
            for key, child in value.items()
        }
    if isinstance(value, list):
        return [sanitize_for_logging(item) for item in value]
    if isinstance(value, str):
        return sanitize_text(value)
    return value
