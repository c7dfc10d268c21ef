"""Line storage for line_engine buffers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterable, Iterator, List, Optional, Sequence

from .results import EditStatus
from .state import DirtyTracker

if TYPE_CHECKING:
    from line_engine.syntax.highlighter import LineHighlight


@dataclass(slots=True, eq=False)
class Line:
    """One row of the document.

    ``revision`` increases on every content change; the highlighter compares
    it against the revision its cached tags were computed for.
    """

    text: str = ""
    revision: int = 0
    highlight: Optional["LineHighlight"] = field(default=None, repr=False)

    def __len__(self) -> int:
        return len(self.text)

    def replace(self, text: str) -> None:
        self.text = text
        self.revision += 1

    def render_column(self, col: int, tab_stop: int) -> int:
        """Convert a character index into a rendered column, expanding tabs."""

        rx = 0
        for ch in self.text[:col]:
            if ch == "\t":
                rx += tab_stop - (rx % tab_stop)
            else:
                rx += 1
        return rx

    def column_for_render(self, rx: int, tab_stop: int) -> int:
        """Inverse of :meth:`render_column`; lands on the char covering ``rx``."""

        current = 0
        for cx, ch in enumerate(self.text):
            if ch == "\t":
                current += tab_stop - (current % tab_stop)
            else:
                current += 1
            if current > rx:
                return cx
        return len(self.text)


class LineStore:
    """Ordered, mutable collection of lines.

    Bounds violations never raise: every mutator returns an ``EditStatus``
    and leaves the store untouched unless it is ``EditStatus.OK``. Undo and
    redo replay rely on that.

    Lines live in a plain Python list, so inserting or deleting a row shifts
    everything after it. Large documents would want a rope of lines; the
    operations below would keep the same contracts.
    """

    def __init__(
        self,
        lines: Optional[Iterable[str]] = None,
        *,
        dirty: Optional[DirtyTracker] = None,
    ) -> None:
        self.dirty = dirty or DirtyTracker()
        self._lines: List[Line] = []
        # Lowest row touched since the last take_changed_from().
        self._changed_from: Optional[int] = None
        self.load([""] if lines is None else lines)

    @classmethod
    def from_text(cls, text: str) -> "LineStore":
        return cls(split_lines(text))

    def load(self, lines: Iterable[str]) -> None:
        """Replace the whole document; an empty input yields one empty line."""

        self._lines = [Line(text) for text in lines] or [Line()]
        self._mark(0, len(self._lines) - 1)

    def take_changed_from(self) -> Optional[int]:
        """Lowest row changed since the previous call, then reset.

        Meant for a single consumer (the highlighter's known-good watermark).
        """

        row, self._changed_from = self._changed_from, None
        return row

    def snapshot(self) -> Sequence[str]:
        """Return the current lines without exposing internal mutability."""

        return tuple(line.text for line in self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[Line]:
        return iter(self._lines)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def has_row(self, row: int) -> bool:
        return 0 <= row < len(self._lines)

    def line(self, row: int) -> Line:
        return self._lines[row]

    def get_text(self, row: int) -> str:
        return self._lines[row].text

    def line_length(self, row: int) -> int:
        return len(self._lines[row].text)

    # -- structural mutations -------------------------------------------

    def insert_line(self, at: int, content: str = "") -> EditStatus:
        if not 0 <= at <= len(self._lines):
            return EditStatus.OUT_OF_BOUNDS
        self._lines.insert(at, Line(content))
        self._mark(at, len(self._lines) - 1)
        return EditStatus.OK

    def delete_line(self, at: int) -> EditStatus:
        if not self.has_row(at):
            return EditStatus.OUT_OF_BOUNDS
        del self._lines[at]
        self._mark(at, len(self._lines) - 1)
        return EditStatus.OK

    def splice(self, start: int, end: int, texts: Sequence[str]) -> EditStatus:
        """Replace rows ``[start:end]`` with fresh lines built from ``texts``."""

        if not 0 <= start <= end <= len(self._lines):
            return EditStatus.OUT_OF_BOUNDS
        try:
            replacement = [Line(text) for text in texts]
        except MemoryError:
            return EditStatus.ALLOCATION_FAILURE
        self._lines[start:end] = replacement
        if len(replacement) == end - start:
            self._mark(start, start + max(len(replacement) - 1, 0))
        else:
            self._mark(start, len(self._lines) - 1)
        return EditStatus.OK

    # -- content mutations ----------------------------------------------

    def insert_char(self, row: int, at: int, ch: str) -> EditStatus:
        if not self.has_row(row) or len(ch) != 1:
            return EditStatus.OUT_OF_BOUNDS
        text = self._lines[row].text
        if not 0 <= at <= len(text):
            return EditStatus.OUT_OF_BOUNDS
        return self._rewrite(row, lambda: text[:at] + ch + text[at:])

    def delete_char(self, row: int, at: int) -> EditStatus:
        if not self.has_row(row):
            return EditStatus.OUT_OF_BOUNDS
        text = self._lines[row].text
        if not 0 <= at < len(text):
            return EditStatus.OUT_OF_BOUNDS
        return self._rewrite(row, lambda: text[:at] + text[at + 1 :])

    def insert_text(self, row: int, at: int, fragment: str) -> EditStatus:
        if not self.has_row(row) or "\n" in fragment:
            return EditStatus.OUT_OF_BOUNDS
        text = self._lines[row].text
        if not 0 <= at <= len(text):
            return EditStatus.OUT_OF_BOUNDS
        return self._rewrite(row, lambda: text[:at] + fragment + text[at:])

    def delete_range(self, row: int, start: int, end: int) -> EditStatus:
        """Remove ``[start, end)`` from a single line."""

        if not self.has_row(row):
            return EditStatus.OUT_OF_BOUNDS
        text = self._lines[row].text
        if not 0 <= start <= end <= len(text):
            return EditStatus.OUT_OF_BOUNDS
        return self._rewrite(row, lambda: text[:start] + text[end:])

    def set_text(self, row: int, text: str) -> EditStatus:
        if not self.has_row(row) or "\n" in text:
            return EditStatus.OUT_OF_BOUNDS
        return self._rewrite(row, lambda: text)

    def truncate(self, row: int, at: int) -> EditStatus:
        if not self.has_row(row):
            return EditStatus.OUT_OF_BOUNDS
        text = self._lines[row].text
        if not 0 <= at <= len(text):
            return EditStatus.OUT_OF_BOUNDS
        return self._rewrite(row, lambda: text[:at])

    def append_text(self, row: int, suffix: str) -> EditStatus:
        if not self.has_row(row):
            return EditStatus.OUT_OF_BOUNDS
        return self.insert_text(row, len(self._lines[row].text), suffix)

    def _rewrite(self, row: int, build: Callable[[], str]) -> EditStatus:
        try:
            updated = build()
        except MemoryError:
            return EditStatus.ALLOCATION_FAILURE
        self._lines[row].replace(updated)
        self._mark(row, row)
        return EditStatus.OK

    def _mark(self, start: int, end: int) -> None:
        self.dirty.mark(start, end, line_count=len(self._lines))
        if self._changed_from is None or start < self._changed_from:
            self._changed_from = start


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` after dropping ``\\r`` line endings.

    A trailing newline terminates the last line rather than opening a new
    one, matching how files are saved (every line followed by ``\\n``).
    """

    if not text:
        return [""]
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if text.endswith(("\n", "\r")):
        lines.pop()
    return lines
