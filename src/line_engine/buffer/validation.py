"""Validation helpers shared across buffer services."""

from __future__ import annotations

from .document import LineStore
from .state import Cursor
from .sync import BufferValidationError


def ensure_cursor(
    store: LineStore, cursor: Cursor, *, allow_past_end: bool = False
) -> Cursor:
    """Check ``cursor`` against the store.

    ``allow_past_end`` admits ``(line_count, 0)``, the transient position
    below the last line.
    """

    row, col = cursor
    if allow_past_end and row == store.line_count:
        if col != 0:
            raise BufferValidationError("Column out of range", cursor=cursor)
        return cursor
    if row < 0 or row >= store.line_count:
        raise BufferValidationError("Row out of range", cursor=cursor)
    if col < 0 or col > store.line_length(row):
        raise BufferValidationError("Column out of range", cursor=cursor)
    return cursor


def clamp_cursor(store: LineStore, row: int, col: int) -> Cursor:
    max_row = max(0, store.line_count - 1)
    row = max(0, min(row, max_row))
    col = max(0, min(col, store.line_length(row)))
    return (row, col)


def block_end(row: int, col: int, text: str) -> Cursor:
    """Position just past ``text`` once it has been inserted at ``(row, col)``."""

    newlines = text.count("\n")
    if newlines == 0:
        return (row, col + len(text))
    return (row + newlines, len(text) - text.rfind("\n") - 1)
