from __future__ import annotations

import re
from typing import List


_WHITESPACE_RE = re.compile(r"\s+")

ELLIPSIS = "…"


def normalize_whitespace(text: str) -> str:
    """Single-space every whitespace run and trim the ends."""
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def truncate_chars(text: str, max_chars: int, *, suffix: str = ELLIPSIS) -> str:
    """
    Cut `text` to at most `max_chars` characters, `suffix` included.

    Text that already fits is returned unchanged.
    """
    if max_chars <= 0:
        return ""
    if len(text) <= max_chars:
        return text
    keep = max_chars - len(suffix)
    if keep <= 0:
        return suffix[:max_chars]
    return text[:keep] + suffix


def preview(text: str, max_chars: int = 120) -> str:
    """One-line, shortened form of `text` for log messages."""
    return truncate_chars(normalize_whitespace(text), max_chars)


def words(text: str) -> List[str]:
    """Whitespace-separated fields of `text`."""
    return text.split()


def split_paragraphs(text: str) -> List[str]:
    """
    Split on blank-line separators ("\\n\\n").

    Always returns at least one element, so an empty string counts as a
    single (empty) paragraph.
    """
    return text.split("\n\n")
