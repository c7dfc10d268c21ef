"""Bounded, linear undo/redo history."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Iterator, Optional, Protocol

from line_engine.runtime import telemetry

from .results import EditStatus
from .state import Cursor


class UndoKind(str, Enum):
    """The edit an action records; undo applies its inverse."""

    INSERT_CHAR = "insert_char"
    DELETE_CHAR = "delete_char"
    INSERT_EMPTY_LINE = "insert_empty_line"
    SPLIT_LINE = "split_line"
    JOIN_LINES = "join_lines"
    INSERT_BLOCK = "insert_block"
    DELETE_BLOCK = "delete_block"
    MODIFY_LINE_CONTENT = "modify_line_content"


@dataclass(slots=True)
class UndoAction:
    kind: UndoKind
    row: int
    col: int
    text: Optional[str] = None
    line_count: int = 0
    # Cursor restored when this record is replayed in either direction.
    cursor: Cursor = (0, 0)

    @property
    def length(self) -> int:
        return len(self.text) if self.text is not None else 0

    def release(self) -> None:
        self.text = None


class HistoryState(str, Enum):
    EMPTY = "empty"
    HAS_UNDO = "has_undo"
    HAS_REDO = "has_redo"
    HAS_BOTH = "has_both"


class HistoryTarget(Protocol):
    """What the stack needs from the editor it replays actions against."""

    cursor: Cursor

    def revert(self, action: UndoAction) -> EditStatus:
        """Apply the inverse of ``action`` to the buffer."""
        ...

    def replay(self, action: UndoAction) -> EditStatus:
        """Re-apply ``action`` as originally performed."""
        ...


class UndoRedoStack:
    """Two bounded stacks of :class:`UndoAction`.

    Pushing a fresh action always empties the redo side, so history never
    branches. Undo and redo move the *same* record between the stacks; the
    payload is handed over, not copied.
    """

    def __init__(self, capacity: int = 100, *, logger_name: str | None = None) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._undo: Deque[UndoAction] = deque()
        self._redo: Deque[UndoAction] = deque()
        self._logger_name = logger_name

    def __len__(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    @property
    def state(self) -> HistoryState:
        if self._undo and self._redo:
            return HistoryState.HAS_BOTH
        if self._undo:
            return HistoryState.HAS_UNDO
        if self._redo:
            return HistoryState.HAS_REDO
        return HistoryState.EMPTY

    def can_undo(self) -> bool:
        return bool(self._undo)

    def can_redo(self) -> bool:
        return bool(self._redo)

    def peek_undo(self) -> Optional[UndoAction]:
        return self._undo[-1] if self._undo else None

    def peek_redo(self) -> Optional[UndoAction]:
        return self._redo[-1] if self._redo else None

    def iter_undo(self) -> Iterator[UndoAction]:
        """Oldest first."""

        return iter(tuple(self._undo))

    def push(self, action: UndoAction, *, clear_redo: bool = True) -> None:
        """Record ``action``; with ``clear_redo=False`` the caller must call
        :meth:`clear_redo` once the edit has actually been applied.
        """

        self._append(self._undo, action)
        if clear_redo:
            self.clear_redo()

    def clear_redo(self) -> None:
        self._drain(self._redo)

    def retract(self, action: UndoAction) -> bool:
        """Drop ``action`` again if it is still the newest undo entry.

        Used when the mutation an action describes could not be applied.
        """

        if self._undo and self._undo[-1] is action:
            self._undo.pop()
            return True
        return False

    def clear(self) -> None:
        self._drain(self._undo)
        self._drain(self._redo)

    def undo(self, target: HistoryTarget) -> EditStatus:
        return self._transfer(self._undo, self._redo, target, forward=False)

    def redo(self, target: HistoryTarget) -> EditStatus:
        return self._transfer(self._redo, self._undo, target, forward=True)

    def _transfer(
        self,
        source: Deque[UndoAction],
        destination: Deque[UndoAction],
        target: HistoryTarget,
        *,
        forward: bool,
    ) -> EditStatus:
        if not source:
            return EditStatus.EMPTY_HISTORY
        action = source.pop()
        cursor_before = target.cursor
        status = target.replay(action) if forward else target.revert(action)
        if not status.ok:
            source.append(action)
            telemetry.record_event(
                "history.replay_failed",
                level="warning",
                data={"kind": action.kind.value, "status": status.value},
                logger_name=self._logger_name,
            )
            return status
        target.cursor = action.cursor
        action.cursor = cursor_before
        self._append(destination, action)
        return EditStatus.OK

    def _append(self, stack: Deque[UndoAction], action: UndoAction) -> None:
        if len(stack) >= self.capacity:
            evicted = stack.popleft()
            evicted.release()
            telemetry.record_event(
                "history.evict",
                data={"kind": evicted.kind.value, "capacity": self.capacity},
                logger_name=self._logger_name,
            )
        stack.append(action)

    @staticmethod
    def _drain(stack: Deque[UndoAction]) -> None:
        while stack:
            stack.pop().release()
