"""Text normalization helpers for article headings and content."""

import re

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """
    Normalize multi-line article content.

    Converts CRLF to LF and non-breaking spaces to plain spaces, strips
    trailing whitespace from every line and trims the result.

    Args:
        text: Raw article content

    Returns:
        Normalized content (empty string if nothing substantive remains)
    """
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\u00a0", " ")
    lines = [line.rstrip() for line in text.split("\n")]
    return "\n".join(lines).strip()


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", text or "").strip()
