"""Incremental lexical tagging for display."""

from .highlighter import (
    DOUBLE_OPERATORS,
    SINGLE_OPERATORS,
    Highlighter,
    HighlightTag,
    LineHighlight,
    Tags,
    highlight_line,
)

__all__ = [
    "DOUBLE_OPERATORS",
    "SINGLE_OPERATORS",
    "Highlighter",
    "HighlightTag",
    "LineHighlight",
    "Tags",
    "highlight_line",
]
