from __future__ import annotations

from typing import Callable, Iterable

import pytest

from line_engine.buffer import (
    BufferState,
    EditOperations,
    EditStatus,
    HistoryState,
    LineStore,
    UndoAction,
    UndoKind,
    UndoRedoStack,
)
from line_engine.buffer.state import Cursor


def make_edits(
    lines: Iterable[str], cursor: Cursor = (0, 0), capacity: int = 100
) -> EditOperations:
    state = BufferState(cursor=cursor)
    return EditOperations(LineStore(lines), state, UndoRedoStack(capacity))


def snapshot(edits: EditOperations) -> tuple[tuple[str, ...], Cursor]:
    return tuple(edits.store.snapshot()), edits.cursor


def test_undo_restores_inserted_char() -> None:
    edits = make_edits(["abc"], (0, 1))
    edits.insert_char("X")

    assert edits.history.undo(edits) is EditStatus.OK
    assert edits.store.snapshot() == ("abc",)
    assert edits.cursor == (0, 1)
    assert edits.history.state is HistoryState.HAS_REDO


def test_undo_restores_joined_lines() -> None:
    edits = make_edits(["hello", "world"], (1, 0))
    edits.delete_backward()

    assert edits.history.undo(edits) is EditStatus.OK
    assert edits.store.snapshot() == ("hello", "world")
    assert edits.cursor == (1, 0)


def test_undo_on_empty_history() -> None:
    edits = make_edits(["abc"])

    assert edits.history.undo(edits) is EditStatus.EMPTY_HISTORY
    assert edits.history.redo(edits) is EditStatus.EMPTY_HISTORY
    assert edits.history.state is HistoryState.EMPTY


SCENARIOS: list[tuple[list[str], Cursor, Callable[[EditOperations], object]]] = [
    (["abc"], (0, 1), lambda e: e.insert_char("X")),
    (["abc"], (0, 2), lambda e: e.delete_backward()),
    (["abc"], (0, 0), lambda e: e.delete_forward()),
    (["ab", "cd"], (1, 0), lambda e: e.delete_backward()),
    (["ab", "cd"], (0, 2), lambda e: e.delete_forward()),
    (["hello"], (0, 2), lambda e: e.insert_newline()),
    (["hello"], (0, 0), lambda e: e.insert_newline()),
    (["one", "two"], (1, 1), lambda e: e.duplicate_line()),
    (["MiXed"], (0, 2), lambda e: e.change_line_case(True)),
    (["ac"], (0, 1), lambda e: e.insert_text_block(0, 1, "1\n2\n3")),
    (["abc", "def", "ghi"], (0, 1), lambda e: e.delete_text_block(0, 1, 2, 1)),
    (["a", "b", "c"], (1, 0), lambda e: e.delete_line()),
    (["abc"], (1, 0), lambda e: e.insert_char("z")),
]


@pytest.mark.parametrize("lines, cursor, operation", SCENARIOS)
def test_undo_then_redo_is_identity(
    lines: list[str], cursor: Cursor, operation: Callable[[EditOperations], object]
) -> None:
    edits = make_edits(lines, cursor)
    before = snapshot(edits)
    operation(edits)
    after = snapshot(edits)
    depth = len(edits.history)

    for _ in range(depth):
        assert edits.history.undo(edits) is EditStatus.OK
    assert snapshot(edits) == before

    for _ in range(depth):
        assert edits.history.redo(edits) is EditStatus.OK
    assert snapshot(edits) == after


def test_redo_keeps_remaining_redo_entries() -> None:
    edits = make_edits([""])
    for ch in "abc":
        edits.insert_char(ch)
    for _ in range(3):
        edits.history.undo(edits)

    edits.history.redo(edits)

    assert edits.store.snapshot() == ("a",)
    assert edits.history.redo_depth == 2
    assert edits.history.state is HistoryState.HAS_BOTH


def test_new_edit_clears_redo() -> None:
    edits = make_edits(["abc"], (0, 3))
    edits.insert_char("d")
    edits.history.undo(edits)

    edits.insert_char("e")

    assert edits.history.can_redo() is False
    assert edits.history.redo(edits) is EditStatus.EMPTY_HISTORY


def test_capacity_evicts_exactly_the_oldest() -> None:
    capacity = 3
    history = UndoRedoStack(capacity)
    actions = [
        UndoAction(kind=UndoKind.INSERT_CHAR, row=0, col=i, text=str(i))
        for i in range(capacity + 1)
    ]

    for action in actions:
        history.push(action)

    assert len(history) == capacity
    assert list(history.iter_undo()) == actions[1:]
    assert actions[0].text is None


def test_capacity_bounds_real_edit_history() -> None:
    edits = make_edits([""], capacity=2)
    for ch in "abc":
        edits.insert_char(ch)

    assert edits.history.undo(edits) is EditStatus.OK
    assert edits.history.undo(edits) is EditStatus.OK
    assert edits.history.undo(edits) is EditStatus.EMPTY_HISTORY
    assert edits.store.snapshot() == ("a",)


def test_failed_replay_keeps_action_on_its_stack() -> None:
    edits = make_edits(["abc"], (0, 3))
    edits.insert_char("d")
    # Shrink the line underneath the history so the inverse no longer fits.
    edits.store.set_text(0, "")

    assert edits.history.undo(edits) is EditStatus.OUT_OF_BOUNDS
    assert len(edits.history) == 1
    assert edits.history.redo_depth == 0


def test_modify_line_payload_swaps_on_each_transfer() -> None:
    edits = make_edits(["lower"])
    edits.change_line_case(True)
    action = edits.history.peek_undo()
    assert action is not None

    edits.history.undo(edits)
    assert action.text == "LOWER"
    edits.history.redo(edits)
    assert action.text == "lower"


def test_retract_only_drops_newest() -> None:
    history = UndoRedoStack()
    first = UndoAction(kind=UndoKind.INSERT_CHAR, row=0, col=0, text="a")
    second = UndoAction(kind=UndoKind.INSERT_CHAR, row=0, col=1, text="b")
    history.push(first)
    history.push(second)

    assert history.retract(first) is False
    assert history.retract(second) is True
    assert history.peek_undo() is first


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        UndoRedoStack(0)


def test_undoing_a_mixed_sequence_restores_the_original() -> None:
    edits = make_edits(["abc", "def"], (0, 1))
    before = tuple(edits.store.snapshot())

    edits.insert_char("X")
    edits.insert_newline()
    edits.insert_text_block(0, 0, "top\n")
    edits.cursor = (3, 3)
    edits.delete_backward()
    edits.cursor = (1, 0)
    edits.delete_backward()
    edits.duplicate_line()
    edits.change_line_case(True)
    edits.delete_text_block(0, 1, 2, 1)
    depth = len(edits.history)
    assert depth == 8

    for _ in range(depth):
        assert edits.history.undo(edits) is EditStatus.OK

    assert tuple(edits.store.snapshot()) == before
    assert edits.history.can_undo() is False


def test_failed_edit_keeps_redo_history(monkeypatch: pytest.MonkeyPatch) -> None:
    edits = make_edits(["abc"], (0, 3))
    edits.insert_char("d")
    edits.history.undo(edits)
    assert edits.history.redo_depth == 1

    def exhausted(*_args: object) -> EditStatus:
        raise MemoryError

    monkeypatch.setattr(edits.store, "insert_char", exhausted)

    assert edits.insert_char("e") is EditStatus.ALLOCATION_FAILURE
    assert edits.history.redo_depth == 1
    assert len(edits.history) == 0

    monkeypatch.undo()
    assert edits.history.redo(edits) is EditStatus.OK
    assert edits.store.snapshot() == ("abcd",)
