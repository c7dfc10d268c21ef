"""Cursor motions over a line store.

Each motion is a pure function from the current cursor to the next one.
Moving down from the last line lands on the transient row ``line_count``.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from .document import LineStore
from .state import Cursor

Motion = Callable[[LineStore, Cursor], Cursor]


def _length(store: LineStore, row: int) -> int:
    return store.line_length(row) if store.has_row(row) else 0


def _clamp_col(store: LineStore, row: int, col: int) -> Cursor:
    return (row, max(0, min(col, _length(store, row))))


def left(store: LineStore, cursor: Cursor) -> Cursor:
    row, col = cursor
    if col > 0:
        return (row, col - 1)
    if row > 0:
        return (row - 1, _length(store, row - 1))
    return cursor


def right(store: LineStore, cursor: Cursor) -> Cursor:
    row, col = cursor
    if not store.has_row(row):
        return cursor
    if col < store.line_length(row):
        return (row, col + 1)
    if row < store.line_count - 1:
        return (row + 1, 0)
    return cursor


def up(store: LineStore, cursor: Cursor) -> Cursor:
    row, col = cursor
    if row > 0:
        row -= 1
    return _clamp_col(store, row, col)


def down(store: LineStore, cursor: Cursor) -> Cursor:
    row, col = cursor
    if row < store.line_count:
        row += 1
    return _clamp_col(store, row, col)


def line_start(store: LineStore, cursor: Cursor) -> Cursor:
    del store
    return (cursor[0], 0)


def line_end(store: LineStore, cursor: Cursor) -> Cursor:
    return (cursor[0], _length(store, cursor[0]))


def word_start(store: LineStore, cursor: Cursor) -> Cursor:
    """Back over trailing punctuation, then over the word before the cursor."""

    row, col = cursor
    if not store.has_row(row):
        return cursor
    text = store.get_text(row)
    while col > 0 and not text[col - 1].isalnum() and not text[col - 1].isspace():
        col -= 1
    while col > 0 and text[col - 1].isalnum():
        col -= 1
    return (row, col)


def word_end(store: LineStore, cursor: Cursor) -> Cursor:
    row, col = cursor
    if not store.has_row(row):
        return cursor
    text = store.get_text(row)
    size = len(text)
    while col < size and not text[col].isalnum() and not text[col].isspace():
        col += 1
    while col < size and text[col].isalnum():
        col += 1
    return (row, col)


def document_start(store: LineStore, cursor: Cursor) -> Cursor:
    del store, cursor
    return (0, 0)


def document_end(store: LineStore, cursor: Cursor) -> Cursor:
    del cursor
    last = store.line_count - 1
    return (last, store.line_length(last))


def goto_line(store: LineStore, number: int) -> Optional[Cursor]:
    """1-based line jump; ``None`` when the line does not exist."""

    if number < 1 or number > store.line_count:
        return None
    return (number - 1, 0)


MOTIONS: Dict[str, Motion] = {
    "left": left,
    "right": right,
    "up": up,
    "down": down,
    "line_start": line_start,
    "line_end": line_end,
    "word_start": word_start,
    "word_end": word_end,
    "document_start": document_start,
    "document_end": document_end,
}
