"""Anchor/cursor selection ranges and their content."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from .document import LineStore
from .registers import Clipboard
from .results import EditStatus
from .state import BufferState, Cursor, SelectionRange
from .sync import BufferValidationError

if TYPE_CHECKING:
    from .edits import EditOperations


def normalize(anchor: Cursor, cursor: Cursor) -> SelectionRange:
    """Order two points row-major, ties broken by column."""

    if anchor <= cursor:
        return (anchor, cursor)
    return (cursor, anchor)


def range_contains(selection: SelectionRange, row: int, col: int) -> bool:
    (start_row, start_col), (end_row, end_col) = selection
    if row < start_row or row > end_row:
        return False
    if row == start_row and row == end_row:
        return start_col <= col < end_col
    if row == start_row:
        return col >= start_col
    if row == end_row:
        return col < end_col
    return True


def extract(store: LineStore, start: Cursor, end: Cursor) -> str:
    """Concatenate the selected slice of each spanned row, ``\\n``-joined."""

    start, end = normalize(start, end)
    if start == end:
        return ""
    (start_row, start_col), (end_row, end_col) = start, end
    if not (store.has_row(start_row) and store.has_row(end_row)):
        raise BufferValidationError("Row out of range", cursor=end)
    parts = []
    for row in range(start_row, end_row + 1):
        text = store.get_text(row)
        begin = start_col if row == start_row else 0
        stop = end_col if row == end_row else len(text)
        parts.append(text[begin:max(begin, stop)])
    return "\n".join(parts)


class SelectionModel:
    """Range queries over the live anchor/cursor pair of a session."""

    def __init__(self, store: LineStore, state: BufferState) -> None:
        self.store = store
        self.state = state

    @property
    def active(self) -> bool:
        return self.state.anchor is not None

    def begin(self, anchor: Optional[Cursor] = None) -> None:
        self.state.anchor = anchor if anchor is not None else self.state.cursor

    def clear(self) -> None:
        self.state.clear_selection()

    def toggle(self) -> bool:
        if self.active:
            self.clear()
        else:
            self.begin()
        return self.active

    def range(self) -> Optional[SelectionRange]:
        if self.state.anchor is None:
            return None
        return normalize(self.state.anchor, self.state.cursor)

    def contains(self, row: int, col: int) -> bool:
        selection = self.range()
        return selection is not None and range_contains(selection, row, col)

    def text(self) -> str:
        selection = self.range()
        if selection is None:
            return ""
        return extract(self.store, *selection)

    def copy(self, clipboard: Clipboard) -> EditStatus:
        content = self.text()
        if not content:
            return EditStatus.EMPTY_SELECTION
        clipboard.set(content)
        return EditStatus.OK

    def cut(self, edits: "EditOperations", clipboard: Clipboard) -> EditStatus:
        status = self.copy(clipboard)
        if not status.ok:
            return status
        return self.delete(edits)

    def delete(self, edits: "EditOperations") -> EditStatus:
        selection = self.range()
        if selection is None:
            return EditStatus.EMPTY_SELECTION
        (start_row, start_col), (end_row, end_col) = selection
        status = edits.delete_text_block(start_row, start_col, end_row, end_col)
        if status.ok:
            self.clear()
        return status
