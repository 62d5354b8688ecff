"""Redaction helpers for provider credentials in logs."""

from __future__ import annotations

import re

_URL_USERINFO_RE = re.compile(r"([a-z][a-z0-9+.-]*://)([^@/]+)@", re.IGNORECASE)
# Twitch takes client_secret as a query param; Rakuten takes applicationId/affiliateId.
_QUERY_SECRET_RE = re.compile(
    r"(?i)(client_secret|secret|token|access_token|applicationId|affiliateId|api_key)=([^&\s'\"]+)"
)
_BEARER_RE = re.compile(r"(?i)(bearer\s+)([A-Za-z0-9._~-]+)")


def redact_secrets(text: str) -> str:
    """Redact provider credentials from a log string."""
    if not text:
        return text
    redacted = _URL_USERINFO_RE.sub(r"\1***@", text)
    redacted = _QUERY_SECRET_RE.sub(r"\1=***", redacted)
    redacted = _BEARER_RE.sub(r"\1***", redacted)
    return redacted
