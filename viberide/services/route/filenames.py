"""Download filename sanitizing."""

import re

MAX_FILENAME_LENGTH = 100

_DISALLOWED = re.compile(r"[^A-Za-z0-9\-_. ]")
_WHITESPACE = re.compile(r"\s+")
_DASHES = re.compile(r"-+")


def sanitize_filename(name: str) -> str:
    """Reduce ``name`` to lowercase ``[a-z0-9-_.]`` of at most 100 characters.

    Steps run in a fixed order: disallowed characters become dashes, whitespace
    runs become one dash, dash runs collapse, edge dashes are stripped, the
    result is lowercased and truncated.
    """
    result = _DISALLOWED.sub("-", name)
    result = _WHITESPACE.sub("-", result)
    result = _DASHES.sub("-", result)
    result = result.strip("-")
    # Truncation may expose a trailing dash
    return result.lower()[:MAX_FILENAME_LENGTH].rstrip("-")
