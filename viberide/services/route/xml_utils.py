"""Text helpers for the hand-written XML exports."""

import re
from datetime import datetime, timezone
from typing import Any
from xml.sax.saxutils import escape

# escape() always handles &, < and > first, so the quote entities are never re-encoded
_QUOTE_ENTITIES = {'"': "&quot;", "'": "&apos;"}

# Anything outside the XML 1.0 Char production
INVALID_XML_CHARS = re.compile(
    "[^\\x09\\x0a\\x0d\\x20-\\ud7ff\\ue000-\\ufffd\\U00010000-\\U0010ffff]"
)


def has_invalid_xml_chars(value: str) -> bool:
    return INVALID_XML_CHARS.search(value) is not None


def escape_xml(value: Any) -> str:
    """Escape the five XML-reserved characters in ``value``.

    Characters XML 1.0 cannot carry (C0 controls other than tab, newline and
    carriage return, lone surrogates, U+FFFE and U+FFFF) are dropped.
    """
    return escape(INVALID_XML_CHARS.sub("", str(value)), _QUOTE_ENTITIES)


def format_number(value: Any) -> str:
    """Render a number in its shortest form (``10.0`` -> ``10``, ``2.5`` -> ``2.5``)."""
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
