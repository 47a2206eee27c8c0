"""
Credential redaction for log output.

Request payloads carry auth keys and API keys. Anything logged through
``sanitize()`` or a logger carrying ``RedactingFilter`` has the values of
sensitive keys replaced before it reaches stderr.

Example:
    >>> sanitize({"appId": "abc", "authKey": "s3cret"})
    {'appId': 'abc', 'authKey': '***REDACTED***'}
"""

import logging
from typing import Any

REDACTED = "***REDACTED***"

SENSITIVE_KEYS = (
    "authkey",
    "apikey",
    "xfunctionskey",
    "pollkey",
    "password",
    "token",
    "secret",
)


def _normalize(key: str) -> str:
    return key.lower().replace("_", "").replace("-", "")


def is_sensitive_key(key: str) -> bool:
    """True when a key name looks like it holds a credential."""
    normalized = _normalize(key)
    return any(marker in normalized for marker in SENSITIVE_KEYS)


def sanitize(data: Any) -> Any:
    """
    Return a copy of ``data`` with credential values redacted.

    Dicts are walked recursively; lists and tuples element-wise. Empty
    credential values are left as-is so that "missing key" stays visible.
    """
    if isinstance(data, dict):
        return {
            key: REDACTED if is_sensitive_key(str(key)) and value else sanitize(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [sanitize(item) for item in data]
    if isinstance(data, tuple):
        return tuple(sanitize(item) for item in data)
    return data


class RedactingFilter(logging.Filter):
    """Logging filter that sanitizes structured record arguments."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.args, dict):
            record.args = sanitize(record.args)
        elif isinstance(record.args, tuple):
            record.args = sanitize(record.args)
        return True


__all__ = ["REDACTED", "RedactingFilter", "is_sensitive_key", "sanitize"]
