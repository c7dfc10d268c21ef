"""Cursor, anchor, and dirty-range tracking state for buffers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

Cursor = Tuple[int, int]  # (row, column)
SelectionRange = Tuple[Cursor, Cursor]


@dataclass(slots=True)
class DirtyRange:
    """Inclusive row span that needs redrawing."""

    start: int
    end: int

    def merge(self, start: int, end: int) -> None:
        self.start = min(self.start, start)
        self.end = max(self.end, end)


class DirtyTracker:
    """Accumulates touched rows until a redraw consumes them."""

    def __init__(self) -> None:
        self._range: Optional[DirtyRange] = None

    def mark(self, start: int, end: int, *, line_count: int) -> None:
        start = max(0, start)
        end = min(end, line_count - 1)
        if end < start:
            end = start
        if self._range is None:
            self._range = DirtyRange(start, end)
        else:
            self._range.merge(start, end)

    def peek(self) -> Optional[DirtyRange]:
        if self._range is None:
            return None
        return DirtyRange(self._range.start, self._range.end)

    def consume(self) -> Optional[DirtyRange]:
        current, self._range = self._range, None
        return current


@dataclass(slots=True)
class BufferState:
    """Mutable cursor + selection anchor owned by a session."""

    cursor: Cursor = (0, 0)
    anchor: Optional[Cursor] = None
    modified: bool = False

    def set_cursor(self, row: int, col: int) -> None:
        self.cursor = (row, col)

    @property
    def selecting(self) -> bool:
        return self.anchor is not None

    def begin_selection(self) -> None:
        self.anchor = self.cursor

    def clear_selection(self) -> None:
        self.anchor = None
