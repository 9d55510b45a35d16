# src/roundtable/utils/__init__.py

from .text import (
    normalize_whitespace,
    preview,
    split_paragraphs,
    truncate_chars,
    words,
)
from .tracing import configure_logging, trace_block, traced

__all__ = [
    "normalize_whitespace",
    "preview",
    "split_paragraphs",
    "truncate_chars",
    "words",
    "configure_logging",
    "trace_block",
    "traced",
]
