"""Error message sanitization for task errors surfaced in run results."""

from __future__ import annotations

import os
import re

MAX_ERROR_LENGTH = 2000

_SECRET_PATTERNS = (
    (r"sk-ant-[a-zA-Z0-9_-]+", "[REDACTED_KEY]"),
    (r"sk-[a-zA-Z0-9_-]{20,}", "[REDACTED_KEY]"),
    (r"Bearer\s+\S+", "Bearer [REDACTED]"),
    (r"x-api-key:\s*\S+", "x-api-key: [REDACTED]"),
    (r"\bapi_key=[^\s&]+", "api_key=[REDACTED]"),
    (r"Authorization:[^\r\n]*", "Authorization: [REDACTED]"),
)


def sanitize_error(message: str, max_length: int = MAX_ERROR_LENGTH) -> str:
    """Strip credentials and home paths from an error message and cap its length."""
    if not message:
        return message

    sanitized = message
    for pattern, replacement in _SECRET_PATTERNS:
        sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)

    home = os.environ.get("USERPROFILE") or os.environ.get("HOME") or ""
    if home and home != "/":
        sanitized = sanitized.replace(home, "[USER_HOME]")

    if len(sanitized) > max_length:
        sanitized = sanitized[: max_length - 3] + "..."
    return sanitized
