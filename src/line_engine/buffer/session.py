"""Editing session: the context object that owns one document and its history."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Callable, ContextManager, Iterable, List, Optional, Sequence

from line_engine.config import EditorConfig
from line_engine.runtime import telemetry
from line_engine.runtime.telemetry import SpanHandle
from line_engine.syntax import Highlighter, Tags

from . import motion, search
from .document import Line, LineStore, split_lines
from .edits import EditOperations
from .registers import Clipboard
from .results import EditResult, EditStatus
from .selection import SelectionModel
from .state import BufferState, Cursor, DirtyRange, DirtyTracker, SelectionRange
from .sync import BufferMirror, BufferValidationError
from .undo import UndoRedoStack
from .validation import clamp_cursor

LOGGER_NAME = "line_engine.session"


class EditorSession:
    """Owns the buffer, cursor, selection, clipboard and both history stacks.

    Every operation returns an :class:`EditResult`; nothing escapes as an
    exception for ordinary failures such as out-of-range positions.
    """

    def __init__(
        self,
        lines: Optional[Iterable[str]] = None,
        *,
        name: str = "default",
        config: Optional[EditorConfig] = None,
    ) -> None:
        self.name = name
        self.config = config or EditorConfig()
        self.dirty = DirtyTracker()
        self.store = LineStore(lines, dirty=self.dirty)
        self.state = BufferState()
        self.history = UndoRedoStack(self.config.undo_capacity, logger_name=LOGGER_NAME)
        self.edits = EditOperations(self.store, self.state, self.history)
        self.selection = SelectionModel(self.store, self.state)
        self.clipboard = Clipboard()
        self.highlighter = Highlighter(
            self.store, code_mode=self.config.code_mode, logger_name=LOGGER_NAME
        )
        self.search = search.SearchState()

    @classmethod
    def from_text(
        cls, text: str, *, name: str = "default", config: Optional[EditorConfig] = None
    ) -> "EditorSession":
        return cls(split_lines(text), name=name, config=config)

    # -- load / save ------------------------------------------------------

    def load(self, lines: Iterable[str]) -> EditResult:
        """Replace the document with already newline-stripped lines."""

        with Transaction(self, "load") as tx:
            tx.run(lambda: self._load(lines))
        return tx.result

    def _load(self, lines: Iterable[str]) -> EditStatus:
        self.store.load(lines)
        self.history.clear()
        self.state.set_cursor(0, 0)
        self.state.clear_selection()
        self.state.modified = False
        self.search.reset()
        return EditStatus.OK

    def save(self) -> List[str]:
        """Line contents in order; the caller writes each followed by ``\\n``."""

        self.state.modified = False
        return list(self.store.snapshot())

    def to_text(self) -> str:
        return "".join(f"{line}\n" for line in self.store.snapshot())

    # -- query surface ----------------------------------------------------

    @property
    def cursor(self) -> Cursor:
        return self.state.cursor

    @property
    def modified(self) -> bool:
        return self.state.modified

    @property
    def line_count(self) -> int:
        return self.store.line_count

    @property
    def lines(self) -> Sequence[str]:
        return self.store.snapshot()

    def line(self, row: int) -> str:
        return self.store.get_text(row)

    def line_length(self, row: int) -> int:
        return self.store.line_length(row)

    def line_record(self, row: int) -> Line:
        return self.store.line(row)

    def tags_for(self, row: int) -> Tags:
        return self.highlighter.tags_for(row)

    def highlight_range(self, start: int, end: int) -> List[Tags]:
        return self.highlighter.highlight_range(start, end)

    def set_code_mode(self, enabled: bool) -> None:
        self.highlighter.set_code_mode(enabled)
        self.dirty.mark(0, self.store.line_count - 1, line_count=self.store.line_count)

    def selection_range(self) -> Optional[SelectionRange]:
        return self.selection.range()

    def render_column(self, row: int, col: int) -> int:
        return self.store.line(row).render_column(col, self.config.tab_stop)

    def consume_dirty_range(self) -> Optional[DirtyRange]:
        return self.dirty.consume()

    def mirror(self, *, attributes: Optional[dict[str, str]] = None) -> BufferMirror:
        return BufferMirror(
            lines=tuple(self.store.snapshot()),
            cursor=self.state.cursor,
            selection=self.selection.range(),
            dirty=self.dirty.peek(),
            attributes=dict(attributes or {}),
        )

    def pull_buffer(self) -> BufferMirror:
        return self.mirror(attributes={"name": self.name})

    def push_clipboard(self, text: str) -> None:
        self.clipboard.set(text)

    # -- editing ----------------------------------------------------------

    def insert_char(self, ch: str) -> EditResult:
        return self._edit("insert_char", self.edits.insert_char, ch)

    def insert_text(self, text: str) -> EditResult:
        """Type ``text`` at the cursor as one reversible block."""

        row, col = self.state.cursor
        return self._edit("insert_text", self.edits.insert_text_block, row, col, text)

    def delete_backward(self) -> EditResult:
        return self._edit("delete_backward", self.edits.delete_backward)

    def delete_forward(self) -> EditResult:
        return self._edit("delete_forward", self.edits.delete_forward)

    def insert_newline(self) -> EditResult:
        return self._edit("insert_newline", self.edits.insert_newline)

    def duplicate_line(self) -> EditResult:
        return self._edit(
            "duplicate_line", self.edits.duplicate_line, message="Line duplicated."
        )

    def change_line_case(self, upper: bool) -> EditResult:
        message = "Converted to uppercase." if upper else "Converted to lowercase."
        return self._edit(
            "change_line_case", self.edits.change_line_case, upper, message=message
        )

    def undo(self) -> EditResult:
        with Transaction(self, "undo") as tx:
            tx.run(lambda: self.history.undo(self.edits))
        return tx.finish(ok="Undo successful.", empty="Nothing to undo.")

    def redo(self) -> EditResult:
        with Transaction(self, "redo") as tx:
            tx.run(lambda: self.history.redo(self.edits))
        return tx.finish(ok="Redo successful.", empty="Nothing to redo.")

    # -- clipboard --------------------------------------------------------

    def copy_line(self) -> EditResult:
        row = self.state.cursor[0]
        if not self.store.has_row(row):
            return EditResult.failure(EditStatus.OUT_OF_BOUNDS, "Nothing to copy.")
        self.clipboard.set(self.store.get_text(row), register_type="line")
        return EditResult.success("Line copied.")

    def cut_line(self) -> EditResult:
        with Transaction(self, "cut_line") as tx:
            tx.run(self._cut_line)
        return tx.finish(ok="Line cut.")

    def _cut_line(self) -> EditStatus:
        status, text = self.edits.delete_line()
        if status.ok:
            self.clipboard.set(text, register_type="line")
        return status

    def paste(self) -> EditResult:
        if self.clipboard.empty:
            return EditResult.failure(EditStatus.EMPTY_CLIPBOARD, "Clipboard is empty.")
        row, col = self.state.cursor
        return self._edit(
            "paste",
            self.edits.insert_text_block,
            row,
            col,
            self.clipboard.text,
            message="Pasted.",
        )

    def copy_selection(self) -> EditResult:
        if not self.selection.active:
            return self.copy_line()
        with Transaction(self, "copy_selection") as tx:
            tx.run(lambda: self.selection.copy(self.clipboard))
        self.selection.clear()
        self._touch_all()
        if not tx.status.ok:
            return tx.finish(empty="Empty selection. Nothing copied.")
        return EditResult.success(
            "Selection copied.", count=len(self.clipboard.text)
        )

    def cut_selection(self) -> EditResult:
        if not self.selection.active:
            return self.cut_line()
        with Transaction(self, "cut_selection") as tx:
            tx.run(lambda: self.selection.cut(self.edits, self.clipboard))
        self.selection.clear()
        return tx.finish(ok="Selection cut.", empty="Empty selection. Nothing cut.")

    def delete_selection(self) -> EditResult:
        if not self.selection.active:
            return EditResult.failure(EditStatus.EMPTY_SELECTION, "No selection to delete.")
        with Transaction(self, "delete_selection") as tx:
            tx.run(lambda: self.selection.delete(self.edits))
        self.selection.clear()
        return tx.finish(
            ok="Selection deleted.", empty="Empty selection. Nothing deleted."
        )

    # -- selection & navigation ------------------------------------------

    def toggle_selection(self) -> EditResult:
        active = self.selection.toggle()
        self._touch_all()
        return EditResult.success("Selection on." if active else "Selection off.")

    def select_all(self) -> EditResult:
        self.selection.begin((0, 0))
        self.state.cursor = motion.document_end(self.store, self.state.cursor)
        self._touch_all()
        return EditResult.success("All text selected.")

    def move(self, direction: str) -> EditResult:
        step = motion.MOTIONS.get(direction)
        if step is None:
            return EditResult.failure(
                EditStatus.OUT_OF_BOUNDS, f"Unknown motion '{direction}'."
            )
        return self._move_to(step(self.store, self.state.cursor))

    def set_cursor(self, row: int, col: int) -> EditResult:
        """Place the cursor, clamped onto an existing line."""

        return self._move_to(clamp_cursor(self.store, row, col))

    def goto_line(self, number: int) -> EditResult:
        target = motion.goto_line(self.store, number)
        if target is None:
            return EditResult.failure(
                EditStatus.OUT_OF_BOUNDS,
                f"Line {number} is out of bounds (total lines: {self.store.line_count}).",
            )
        return self._move_to(target, message=f"Moved to line {number}.")

    def _move_to(self, target: Cursor, *, message: Optional[str] = None) -> EditResult:
        previous = self.state.cursor
        self.state.cursor = target
        self._touch_rows(previous[0], target[0])
        return EditResult.success(message)

    # -- search -----------------------------------------------------------

    def find_next(self, query: Optional[str] = None) -> EditResult:
        return self._find(query, search.find_next, direction="next")

    def find_previous(self, query: Optional[str] = None) -> EditResult:
        return self._find(query, search.find_previous, direction="previous")

    def _find(
        self,
        query: Optional[str],
        finder: Callable[[LineStore, str, Cursor], Optional[search.SearchHit]],
        *,
        direction: str,
    ) -> EditResult:
        if query is not None and query != self.search.query:
            self.search.reset(query)
        if not self.search.active:
            return EditResult.failure(EditStatus.NOT_FOUND, "No active search.")
        origin = self.search.last_match or self.state.cursor
        hit = finder(self.store, self.search.query, origin)
        telemetry.record_event(
            "search.find",
            data={"direction": direction, "found": hit is not None},
            logger_name=LOGGER_NAME,
        )
        if hit is None:
            message = f"'{self.search.query}' not found."
            self.search.reset()
            return EditResult.failure(EditStatus.NOT_FOUND, message)
        self.search.last_match = hit.cursor
        suffix = " (wrapped)" if hit.wrapped else ""
        return self._move_to(hit.cursor, message=f"Found '{self.search.query}'{suffix}")

    def replace_all(self, find: str, replacement: str) -> EditResult:
        with Transaction(self, "replace_all") as tx:
            count = search.replace_all(self.edits, find, replacement)
            self.state.cursor = clamp_cursor(self.store, *self.state.cursor)
            tx.note("occurrences", count)
        if not count:
            return EditResult.failure(EditStatus.NOT_FOUND, f"'{find}' not found.")
        return EditResult.success(f"Replaced {count} occurrences.", count=count)

    # -- helpers ----------------------------------------------------------

    def _edit(
        self,
        label: str,
        operation: Callable[..., EditStatus],
        *args: object,
        message: Optional[str] = None,
    ) -> EditResult:
        with Transaction(self, label) as tx:
            tx.run(lambda: operation(*args))
        return tx.finish(ok=message)

    def _touch_rows(self, first: int, second: int) -> None:
        self.dirty.mark(
            min(first, second), max(first, second), line_count=self.store.line_count
        )

    def _touch_all(self) -> None:
        self._touch_rows(0, self.store.line_count - 1)


class Transaction(AbstractContextManager["Transaction"]):
    """Wraps one session operation in a telemetry span and collects its status."""

    def __init__(self, session: EditorSession, label: str) -> None:
        self.session = session
        self.label = label
        self.status = EditStatus.OK
        self._span_cm: Optional[ContextManager[SpanHandle]] = None
        self._handle: Optional[SpanHandle] = None

    def __enter__(self) -> "Transaction":
        self._span_cm = telemetry.span(
            name=f"session::{self.label}",
            logger_name=LOGGER_NAME,
            component=True,
            metadata={"session": self.session.name, "cursor": self.session.cursor},
        )
        self._handle = self._span_cm.__enter__()
        return self

    def run(self, operation: Callable[[], EditStatus]) -> EditStatus:
        try:
            self.status = operation()
        except BufferValidationError as exc:
            self.status = EditStatus.OUT_OF_BOUNDS
            self.note("position", exc.cursor)
        except MemoryError:
            self.status = EditStatus.ALLOCATION_FAILURE
        if not self.status.ok and self._handle is not None:
            self._handle.reject(self.status.value)
        return self.status

    def note(self, key: str, value: object) -> None:
        if self._handle is not None:
            self._handle.add_metadata(key, value)

    @property
    def result(self) -> EditResult:
        return EditResult(self.status)

    def finish(
        self, *, ok: Optional[str] = None, empty: Optional[str] = None
    ) -> EditResult:
        if self.status.ok:
            return EditResult.success(ok)
        if empty and self.status in (EditStatus.EMPTY_HISTORY, EditStatus.EMPTY_SELECTION):
            return EditResult.failure(self.status, empty)
        return EditResult.failure(self.status, _FAILURE_MESSAGES.get(self.status))

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self._span_cm is not None:
            self._span_cm.__exit__(exc_type, exc, tb)
        return False


_FAILURE_MESSAGES = {
    EditStatus.OUT_OF_BOUNDS: "Position out of range.",
    EditStatus.ALLOCATION_FAILURE: "Out of memory; edit aborted.",
    EditStatus.EMPTY_HISTORY: "Nothing to do.",
    EditStatus.EMPTY_SELECTION: "Empty selection.",
    EditStatus.EMPTY_CLIPBOARD: "Clipboard is empty.",
    EditStatus.NOT_FOUND: "Not found.",
}
