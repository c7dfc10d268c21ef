"""Reversible edit operations over a :class:`LineStore`.

Every public operation follows the same order: build the :class:`UndoAction`
that reverses it, push that action, then mutate the store. New line content
is computed before the store is touched and compound edits land through a
single ``splice``, so a failed edit never leaves a half-applied change.
"""

from __future__ import annotations

from typing import Callable, Optional

from .document import LineStore
from .results import EditStatus
from .selection import extract, normalize
from .state import BufferState, Cursor
from .undo import UndoAction, UndoKind, UndoRedoStack
from .validation import block_end, ensure_cursor


class EditOperations:
    """Character and line mutations paired with their inverse actions."""

    def __init__(
        self, store: LineStore, state: BufferState, history: UndoRedoStack
    ) -> None:
        self.store = store
        self.state = state
        self.history = history

    @property
    def cursor(self) -> Cursor:
        return self.state.cursor

    @cursor.setter
    def cursor(self, value: Cursor) -> None:
        self.state.cursor = value

    # -- character level --------------------------------------------------

    def insert_char(self, ch: str) -> EditStatus:
        if len(ch) != 1 or ch in "\r\n":
            return EditStatus.OUT_OF_BOUNDS
        row, col = ensure_cursor(self.store, self.cursor, allow_past_end=True)
        if row == self.store.line_count:
            status = self._commit(
                self._action(UndoKind.INSERT_EMPTY_LINE, row, 0),
                lambda: self.store.insert_line(row, ""),
            )
            if not status.ok:
                return status
        status = self._commit(
            self._action(UndoKind.INSERT_CHAR, row, col, ch),
            lambda: self.store.insert_char(row, col, ch),
        )
        if status.ok:
            self.cursor = (row, col + 1)
        return status

    def delete_backward(self) -> EditStatus:
        row, col = ensure_cursor(self.store, self.cursor, allow_past_end=True)
        if row >= self.store.line_count or (row == 0 and col == 0):
            return EditStatus.OUT_OF_BOUNDS
        if col > 0:
            ch = self.store.get_text(row)[col - 1]
            status = self._commit(
                self._action(UndoKind.DELETE_CHAR, row, col - 1, ch),
                lambda: self.store.delete_char(row, col - 1),
            )
            if status.ok:
                self.cursor = (row, col - 1)
            return status

        prev_length = self.store.line_length(row - 1)
        absorbed = self.store.get_text(row)
        status = self._commit(
            self._action(UndoKind.JOIN_LINES, row - 1, prev_length, absorbed, 1),
            lambda: self._join(row - 1),
        )
        if status.ok:
            self.cursor = (row - 1, prev_length)
        return status

    def delete_forward(self) -> EditStatus:
        row, col = ensure_cursor(self.store, self.cursor, allow_past_end=True)
        if row >= self.store.line_count:
            return EditStatus.OUT_OF_BOUNDS
        text = self.store.get_text(row)
        if col < len(text):
            return self._commit(
                self._action(UndoKind.DELETE_CHAR, row, col, text[col]),
                lambda: self.store.delete_char(row, col),
            )
        if row + 1 >= self.store.line_count:
            return EditStatus.OUT_OF_BOUNDS
        absorbed = self.store.get_text(row + 1)
        return self._commit(
            self._action(UndoKind.JOIN_LINES, row, col, absorbed, 1),
            lambda: self._join(row),
        )

    # -- line level -------------------------------------------------------

    def insert_newline(self) -> EditStatus:
        row, col = ensure_cursor(self.store, self.cursor, allow_past_end=True)
        if col == 0:
            status = self._commit(
                self._action(UndoKind.INSERT_EMPTY_LINE, row, 0),
                lambda: self.store.insert_line(row, ""),
            )
        else:
            tail = self.store.get_text(row)[col:]
            status = self._commit(
                self._action(UndoKind.SPLIT_LINE, row, col, tail, 1),
                lambda: self._split(row, col),
            )
        if status.ok:
            self.cursor = (row + 1, 0)
        return status

    def duplicate_line(self) -> EditStatus:
        row, _ = ensure_cursor(self.store, self.cursor)
        text = self.store.get_text(row)
        block = "\n" + text
        return self._commit(
            self._action(UndoKind.INSERT_BLOCK, row, len(text), block, 2),
            lambda: self._insert_block(row, len(text), block),
        )

    def change_line_case(self, upper: bool) -> EditStatus:
        row, col = ensure_cursor(self.store, self.cursor)
        text = self.store.get_text(row)
        changed = text.upper() if upper else text.lower()
        status = self.replace_line(row, changed)
        if status.ok:
            self.cursor = (row, min(col, len(changed)))
        return status

    def replace_line(self, row: int, text: str) -> EditStatus:
        """Swap a row's content, recorded as ``MODIFY_LINE_CONTENT``."""

        if not self.store.has_row(row) or "\n" in text:
            return EditStatus.OUT_OF_BOUNDS
        current = self.store.get_text(row)
        if current == text:
            return EditStatus.OK
        return self._commit(
            self._action(UndoKind.MODIFY_LINE_CONTENT, row, 0, current, 1),
            lambda: self.store.set_text(row, text),
        )

    # -- blocks -----------------------------------------------------------

    def insert_text_block(self, row: int, col: int, text: str) -> EditStatus:
        """Splice ``text`` (which may contain newlines) in at ``(row, col)``."""

        ensure_cursor(self.store, (row, col))
        if not text:
            return EditStatus.OK
        status = self._commit(
            self._action(UndoKind.INSERT_BLOCK, row, col, text, text.count("\n") + 1),
            lambda: self._insert_block(row, col, text),
        )
        if status.ok:
            self.cursor = block_end(row, col, text)
        return status

    def delete_text_block(
        self, start_row: int, start_col: int, end_row: int, end_col: int
    ) -> EditStatus:
        start = ensure_cursor(self.store, (start_row, start_col))
        end = ensure_cursor(self.store, (end_row, end_col))
        start, end = normalize(start, end)
        if start == end:
            return EditStatus.EMPTY_SELECTION
        payload = extract(self.store, start, end)
        status = self._commit(
            self._action(
                UndoKind.DELETE_BLOCK, *start, payload, end[0] - start[0] + 1
            ),
            lambda: self._delete_block(start, end),
        )
        if status.ok:
            self.cursor = start
        return status

    def delete_line(self) -> tuple[EditStatus, str]:
        """Remove the cursor row; returns the status and the removed text."""

        row, _ = ensure_cursor(self.store, self.cursor)
        text = self.store.get_text(row)
        last = self.store.line_count - 1
        if row < last:
            start, end = (row, 0), (row + 1, 0)
        elif row > 0:
            start, end = (row - 1, self.store.line_length(row - 1)), (row, len(text))
        else:
            start, end = (0, 0), (0, len(text))
        if start == end:
            return EditStatus.OK, text
        status = self.delete_text_block(*start, *end)
        return status, text

    # -- history replay ---------------------------------------------------

    def revert(self, action: UndoAction) -> EditStatus:
        """Apply the inverse of ``action``."""

        handler = self._reverters[action.kind]
        return self._guarded(lambda: handler(self, action))

    def replay(self, action: UndoAction) -> EditStatus:
        """Re-apply ``action`` as originally performed."""

        handler = self._replayers[action.kind]
        return self._guarded(lambda: handler(self, action))

    def _revert_join(self, action: UndoAction) -> EditStatus:
        if not self.store.has_row(action.row):
            return EditStatus.OUT_OF_BOUNDS
        text = self.store.get_text(action.row)
        if action.col > len(text):
            return EditStatus.OUT_OF_BOUNDS
        return self.store.splice(
            action.row, action.row + 1, [text[: action.col], action.text or ""]
        )

    def _swap_line(self, action: UndoAction) -> EditStatus:
        if not self.store.has_row(action.row):
            return EditStatus.OUT_OF_BOUNDS
        current = self.store.get_text(action.row)
        status = self.store.set_text(action.row, action.text or "")
        if status.ok:
            action.text = current
        return status

    def _block_span(self, action: UndoAction) -> EditStatus:
        end = block_end(action.row, action.col, action.text or "")
        return self._delete_block((action.row, action.col), end)

    _reverters: dict[UndoKind, Callable[["EditOperations", UndoAction], EditStatus]] = {
        UndoKind.INSERT_CHAR: lambda self, a: self.store.delete_char(a.row, a.col),
        UndoKind.DELETE_CHAR: lambda self, a: self.store.insert_char(
            a.row, a.col, a.text or ""
        ),
        UndoKind.INSERT_EMPTY_LINE: lambda self, a: self.store.delete_line(a.row),
        UndoKind.SPLIT_LINE: lambda self, a: self._join(a.row),
        UndoKind.JOIN_LINES: _revert_join,
        UndoKind.INSERT_BLOCK: _block_span,
        UndoKind.DELETE_BLOCK: lambda self, a: self._insert_block(
            a.row, a.col, a.text or ""
        ),
        UndoKind.MODIFY_LINE_CONTENT: _swap_line,
    }

    _replayers: dict[UndoKind, Callable[["EditOperations", UndoAction], EditStatus]] = {
        UndoKind.INSERT_CHAR: lambda self, a: self.store.insert_char(
            a.row, a.col, a.text or ""
        ),
        UndoKind.DELETE_CHAR: lambda self, a: self.store.delete_char(a.row, a.col),
        UndoKind.INSERT_EMPTY_LINE: lambda self, a: self.store.insert_line(a.row, ""),
        UndoKind.SPLIT_LINE: lambda self, a: self._split(a.row, a.col),
        UndoKind.JOIN_LINES: lambda self, a: self._join(a.row),
        UndoKind.INSERT_BLOCK: lambda self, a: self._insert_block(
            a.row, a.col, a.text or ""
        ),
        UndoKind.DELETE_BLOCK: _block_span,
        UndoKind.MODIFY_LINE_CONTENT: _swap_line,
    }

    # -- primitives -------------------------------------------------------

    def _split(self, row: int, col: int) -> EditStatus:
        if not self.store.has_row(row):
            return EditStatus.OUT_OF_BOUNDS
        text = self.store.get_text(row)
        if not 0 <= col <= len(text):
            return EditStatus.OUT_OF_BOUNDS
        return self.store.splice(row, row + 1, [text[:col], text[col:]])

    def _join(self, row: int) -> EditStatus:
        if not (self.store.has_row(row) and self.store.has_row(row + 1)):
            return EditStatus.OUT_OF_BOUNDS
        merged = self.store.get_text(row) + self.store.get_text(row + 1)
        return self.store.splice(row, row + 2, [merged])

    def _insert_block(self, row: int, col: int, text: str) -> EditStatus:
        if not self.store.has_row(row):
            return EditStatus.OUT_OF_BOUNDS
        line = self.store.get_text(row)
        if not 0 <= col <= len(line):
            return EditStatus.OUT_OF_BOUNDS
        segments = text.split("\n")
        segments[0] = line[:col] + segments[0]
        segments[-1] = segments[-1] + line[col:]
        return self.store.splice(row, row + 1, segments)

    def _delete_block(self, start: Cursor, end: Cursor) -> EditStatus:
        (start_row, start_col), (end_row, end_col) = start, end
        if not (self.store.has_row(start_row) and self.store.has_row(end_row)):
            return EditStatus.OUT_OF_BOUNDS
        if (start_row, start_col) > (end_row, end_col):
            return EditStatus.OUT_OF_BOUNDS
        head = self.store.get_text(start_row)
        tail = self.store.get_text(end_row)
        if start_col > len(head) or end_col > len(tail):
            return EditStatus.OUT_OF_BOUNDS
        return self.store.splice(
            start_row, end_row + 1, [head[:start_col] + tail[end_col:]]
        )

    def _action(
        self,
        kind: UndoKind,
        row: int,
        col: int,
        text: Optional[str] = None,
        line_count: int = 0,
    ) -> UndoAction:
        return UndoAction(
            kind=kind,
            row=row,
            col=col,
            text=text,
            line_count=line_count,
            cursor=self.cursor,
        )

    def _commit(self, action: UndoAction, mutate: Callable[[], EditStatus]) -> EditStatus:
        self.history.push(action, clear_redo=False)
        status = self._guarded(mutate)
        if status.ok:
            self.history.clear_redo()
        else:
            self.history.retract(action)
        return status

    def _guarded(self, mutate: Callable[[], EditStatus]) -> EditStatus:
        try:
            status = mutate()
        except MemoryError:
            return EditStatus.ALLOCATION_FAILURE
        if status.ok:
            self.state.modified = True
        return status
