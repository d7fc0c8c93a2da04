"""Masking of secrets in request metadata before DEBUG logging."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "auth",
        "access_token",
        "client_secret",
        "cookie",
    }
)


def redact_for_log(values: Mapping[str, Any] | None, *, max_string: int = 200) -> dict[str, str]:
    """Return a copy of request headers/params with secret values masked."""
    if not values:
        return {}
    redacted: dict[str, str] = {}
    for key, value in values.items():
        if str(key).lower() in _SENSITIVE_KEYS:
            redacted[str(key)] = "<redacted>"
            continue
        text = str(value)
        redacted[str(key)] = text if len(text) <= max_string else f"{text[:max_string]}...<truncated>"
    return redacted
