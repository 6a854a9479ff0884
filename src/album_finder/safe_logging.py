"""Log setup for album-finder.

MusicBrainz asks clients to put contact details in their User-Agent, so e-mail
addresses can end up in request logs. Everything routed through the handlers
configured here is scrubbed of them:
- Message sanitization (e-mail addresses)
- Sensitive field redaction for logged headers and parameters
- Rich console handler for the CLI
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

# Fields that should be redacted in logs
REDACT_FIELDS = frozenset(
    {
        "password",
        "secret",
        "token",
        "api_key",
        "apikey",
        "authorization",
        "user-agent",
    }
)

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")


def redact_value(value: str, visible_chars: int = 4) -> str:
    """Redact a sensitive value, showing only first few characters.

    Args:
        value: Value to redact
        visible_chars: Number of characters to show

    Returns:
        Redacted string (e.g., "albu***")
    """
    if len(value) <= visible_chars:
        return "***"
    return f"{value[:visible_chars]}***"


def redact_dict(
    data: Mapping[str, Any],
    redact_fields: frozenset[str] | None = None,
) -> dict[str, Any]:
    """Recursively redact sensitive fields (case-insensitive) in a mapping."""
    if redact_fields is None:
        redact_fields = REDACT_FIELDS

    result: dict[str, Any] = {}
    for key, value in data.items():
        if key.lower() in redact_fields and isinstance(value, str):
            result[key] = redact_value(value)
        elif isinstance(value, Mapping):
            result[key] = redact_dict(value, redact_fields)
        else:
            result[key] = value

    return result


def sanitize_message(message: str) -> str:
    """Replace e-mail addresses in a log message with a marker."""
    return EMAIL_PATTERN.sub("[EMAIL]", message)


class SafeLogFormatter(logging.Formatter):
    """Log formatter that sanitizes the rendered message.

    MBIDs and query text are left intact since they are needed for debugging.
    """

    def format(self, record: logging.LogRecord) -> str:
        # Copy so other handlers see the original record
        record = logging.makeLogRecord(record.__dict__)
        record.msg = sanitize_message(record.getMessage())
        record.args = None
        return super().format(record)


def configure_rich_logging(
    level: int = logging.WARNING,
    format_string: str = "%(message)s",
    show_time: bool = True,
    show_path: bool = False,
) -> Console:
    """Route logging through a Rich handler on stderr and return the stdout console.

    Args:
        level: Root logging level
        format_string: Format applied before Rich renders the record
        show_time: Show timestamps in log lines
        show_path: Show source file and line in log lines

    Returns:
        Console for regular (non-log) CLI output
    """
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=True,
    )
    handler.setFormatter(SafeLogFormatter(format_string))

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if isinstance(existing, RichHandler):
            root_logger.removeHandler(existing)
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    return Console()


## Tests


def test_redact_value():
    assert redact_value("album-finder/0.1.0") == "albu***"
    assert redact_value("abc") == "***"


def test_redact_dict():
    headers = {
        "User-Agent": "album-finder/0.1.0 ( me@example.com )",
        "Accept": "application/json",
        "nested": {"token": "secret-token"},
    }

    redacted = redact_dict(headers)

    assert redacted["User-Agent"] == "albu***"
    assert redacted["Accept"] == "application/json"
    assert redacted["nested"]["token"] == "secr***"


def test_sanitize_message_keeps_mbids():
    msg = "GET release/12345678-1234-1234-1234-123456789abc as me@example.com"
    sanitized = sanitize_message(msg)

    assert "[EMAIL]" in sanitized
    assert "me@example.com" not in sanitized
    assert "12345678-1234-1234-1234-123456789abc" in sanitized


def test_safe_log_formatter_with_args():
    formatter = SafeLogFormatter("%(message)s")
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg="Contact %s",
        args=("user@example.com",),
        exc_info=None,
    )

    assert formatter.format(record) == "Contact [EMAIL]"
