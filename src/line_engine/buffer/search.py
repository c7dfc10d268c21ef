"""Incremental find with wrap-around, and reversible replace-all."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from .document import LineStore
from .state import Cursor

if TYPE_CHECKING:
    from .edits import EditOperations


@dataclass(slots=True)
class SearchState:
    """Last query and where it last matched."""

    query: str = ""
    last_match: Optional[Cursor] = None

    @property
    def active(self) -> bool:
        return bool(self.query)

    def reset(self, query: str = "") -> None:
        self.query = query
        self.last_match = None


@dataclass(frozen=True, slots=True)
class SearchHit:
    cursor: Cursor
    wrapped: bool = False


def find_next(store: LineStore, query: str, origin: Cursor) -> Optional[SearchHit]:
    """First match strictly after ``origin``, wrapping to the top once."""

    if not query:
        return None
    start_row, start_col = origin
    start_col += 1
    for row in range(max(start_row, 0), store.line_count):
        begin = start_col if row == start_row else 0
        index = store.get_text(row).find(query, begin)
        if index != -1:
            return SearchHit((row, index))
    for row in range(0, min(start_row, store.line_count - 1) + 1):
        index = store.get_text(row).find(query)
        if index != -1 and (row < start_row or index < start_col):
            return SearchHit((row, index), wrapped=True)
    return None


def find_previous(
    store: LineStore, query: str, origin: Cursor
) -> Optional[SearchHit]:
    """Last match strictly before ``origin``, wrapping to the bottom once."""

    if not query:
        return None
    start_row, start_col = origin
    start_col -= 1
    for row in range(min(start_row, store.line_count - 1), -1, -1):
        text = store.get_text(row)
        last_start = start_col if row == start_row else len(text) - 1
        if last_start < 0:
            continue
        index = text.rfind(query, 0, last_start + len(query))
        if index != -1:
            return SearchHit((row, index))
    for row in range(store.line_count - 1, max(start_row, 0) - 1, -1):
        begin = start_col if row == start_row else 0
        index = store.get_text(row).rfind(query)
        if index != -1 and index >= begin:
            return SearchHit((row, index), wrapped=True)
    return None


def replace_all(edits: "EditOperations", find: str, replacement: str) -> int:
    """Replace every occurrence, one ``MODIFY_LINE_CONTENT`` action per line.

    Returns the number of occurrences replaced.
    """

    if not find:
        return 0
    store = edits.store
    occurrences = 0
    for row in range(store.line_count):
        text = store.get_text(row)
        count = text.count(find)
        if not count:
            continue
        if edits.replace_line(row, text.replace(find, replacement)).ok:
            occurrences += count
    return occurrences
