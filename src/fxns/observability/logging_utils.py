from __future__ import annotations

import os
from typing import Any, Dict, Mapping

_SENSITIVE_KEYS = {
    "email",
    "phone",
    "authorization",
    "access_token",
    "api_key",
    "apikey",
    "x-api-key",
    "password",
    "secret",
    "token",
    "cookie",
}


def _env_bool(name: str, default: bool = True) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def redact_prompt(prompt: str) -> str:
    if not _env_bool("FXNS_LOG_REDACT_PROMPTS", True):
        return prompt
    if not prompt:
        return prompt
    return "[REDACTED]"


def redact_metadata(meta: Mapping[str, Any]) -> Dict[str, Any]:
    if not _env_bool("FXNS_LOG_REDACT_METADATA", True):
        return dict(meta)
    redacted: Dict[str, Any] = {}
    for key, value in meta.items():
        if str(key).lower() in _SENSITIVE_KEYS:
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = value
    return redacted


def redact_url(url: str) -> str:
    """Drop the query string, which often carries keys and user input."""
    if not _env_bool("FXNS_LOG_REDACT_METADATA", True):
        return url
    base, sep, _ = url.partition("?")
    return f"{base}?[REDACTED]" if sep else base


def redact_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply prompt/metadata redaction to event payloads before logging.
    """

    sanitized = dict(event)
    for key in ("prompt", "content", "message", "input"):
        if key in sanitized and isinstance(sanitized[key], str):
            sanitized[key] = redact_prompt(sanitized[key])
    for key in ("metadata", "headers"):
        if key in sanitized and isinstance(sanitized[key], dict):
            sanitized[key] = redact_metadata(sanitized[key])
    if isinstance(sanitized.get("url"), str):
        sanitized["url"] = redact_url(sanitized["url"])
    return sanitized
