"""Log scrubbing for credentials and one-time account tokens."""

from __future__ import annotations

import logging
import re

_REDACTED = "**REDACTED**"

# Bearer headers and JSON credential fields.
_CREDENTIALS = re.compile(
    r"(Bearer\s+[\w\.-]+|\"(?:access_token|password|current_password|new_password)\"\s*:\s*\"[^\"]+\")",
    re.IGNORECASE,
)
# Reset and verification tokens travel in the URL path and show up in access logs.
_LINK_TOKEN = re.compile(r"(/(?:reset-password|verify-email)/)[\w-]+")


def scrub(text: str) -> str:
    text = _CREDENTIALS.sub(_REDACTED, text)
    return _LINK_TOKEN.sub(rf"\1{_REDACTED}", text)


class SensitiveFilter(logging.Filter):
    """Redact credentials from the message and its interpolation args."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = scrub(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(
                scrub(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        return True


__all__ = ["SensitiveFilter", "scrub"]
