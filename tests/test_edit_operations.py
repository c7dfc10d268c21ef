from __future__ import annotations

from typing import Iterable, Optional

import pytest

from line_engine.buffer import (
    BufferState,
    BufferValidationError,
    EditOperations,
    EditStatus,
    LineStore,
    UndoKind,
    UndoRedoStack,
)
from line_engine.buffer.state import Cursor


def make_edits(
    lines: Iterable[str], cursor: Cursor = (0, 0), capacity: int = 100
) -> EditOperations:
    state = BufferState(cursor=cursor)
    return EditOperations(LineStore(lines), state, UndoRedoStack(capacity))


def last_kind(edits: EditOperations) -> Optional[UndoKind]:
    action = edits.history.peek_undo()
    return action.kind if action else None


def test_insert_char_advances_cursor_and_records() -> None:
    edits = make_edits(["abc"], (0, 1))

    assert edits.insert_char("X") is EditStatus.OK
    assert edits.store.snapshot() == ("aXbc",)
    assert edits.cursor == (0, 2)
    assert last_kind(edits) is UndoKind.INSERT_CHAR
    assert edits.state.modified is True


def test_insert_char_on_row_past_end_materializes_line() -> None:
    edits = make_edits(["abc"], (1, 0))

    assert edits.insert_char("z") is EditStatus.OK
    assert edits.store.snapshot() == ("abc", "z")
    kinds = [action.kind for action in edits.history.iter_undo()]
    assert kinds == [UndoKind.INSERT_EMPTY_LINE, UndoKind.INSERT_CHAR]


def test_insert_char_rejects_newline() -> None:
    edits = make_edits(["abc"])

    assert edits.insert_char("\n") is EditStatus.OUT_OF_BOUNDS
    assert len(edits.history) == 0


def test_invalid_cursor_raises_validation_error() -> None:
    edits = make_edits(["abc"], (0, 9))

    with pytest.raises(BufferValidationError):
        edits.insert_char("x")


def test_backspace_mid_line_deletes_previous_char() -> None:
    edits = make_edits(["abc"], (0, 2))

    assert edits.delete_backward() is EditStatus.OK
    assert edits.store.snapshot() == ("ac",)
    assert edits.cursor == (0, 1)
    assert last_kind(edits) is UndoKind.DELETE_CHAR


def test_backspace_at_line_start_joins_lines() -> None:
    edits = make_edits(["hello", "world"], (1, 0))

    assert edits.delete_backward() is EditStatus.OK
    assert edits.store.snapshot() == ("helloworld",)
    assert edits.cursor == (0, 5)
    action = edits.history.peek_undo()
    assert action is not None
    assert (action.kind, action.row, action.col, action.text) == (
        UndoKind.JOIN_LINES,
        0,
        5,
        "world",
    )


def test_backspace_at_document_start_is_rejected() -> None:
    edits = make_edits(["abc"])

    assert edits.delete_backward() is EditStatus.OUT_OF_BOUNDS
    assert edits.history.can_undo() is False
    assert edits.state.modified is False


def test_delete_forward_joins_next_line_at_end() -> None:
    edits = make_edits(["ab", "cd"], (0, 2))

    assert edits.delete_forward() is EditStatus.OK
    assert edits.store.snapshot() == ("abcd",)
    assert edits.cursor == (0, 2)


def test_delete_forward_at_document_end_is_rejected() -> None:
    edits = make_edits(["ab"], (0, 2))

    assert edits.delete_forward() is EditStatus.OUT_OF_BOUNDS


def test_newline_splits_line() -> None:
    edits = make_edits(["hello"], (0, 2))

    assert edits.insert_newline() is EditStatus.OK
    assert edits.store.snapshot() == ("he", "llo")
    assert edits.cursor == (1, 0)
    assert last_kind(edits) is UndoKind.SPLIT_LINE


def test_newline_at_column_zero_inserts_empty_line() -> None:
    edits = make_edits(["hello"], (0, 0))

    assert edits.insert_newline() is EditStatus.OK
    assert edits.store.snapshot() == ("", "hello")
    assert last_kind(edits) is UndoKind.INSERT_EMPTY_LINE


def test_duplicate_line_keeps_cursor() -> None:
    edits = make_edits(["one", "two"], (0, 1))

    assert edits.duplicate_line() is EditStatus.OK
    assert edits.store.snapshot() == ("one", "one", "two")
    assert edits.cursor == (0, 1)


def test_change_line_case_records_previous_content() -> None:
    edits = make_edits(["MiXed"], (0, 3))

    assert edits.change_line_case(upper=False) is EditStatus.OK
    assert edits.store.snapshot() == ("mixed",)
    action = edits.history.peek_undo()
    assert action is not None
    assert action.kind is UndoKind.MODIFY_LINE_CONTENT
    assert action.text == "MiXed"


def test_replace_line_without_change_records_nothing() -> None:
    edits = make_edits(["same"])

    assert edits.replace_line(0, "same") is EditStatus.OK
    assert len(edits.history) == 0


def test_insert_text_block_places_cursor_after_block() -> None:
    edits = make_edits(["ac"], (0, 1))

    assert edits.insert_text_block(0, 1, "1\n2\n3") is EditStatus.OK
    assert edits.store.snapshot() == ("a1", "2", "3c")
    assert edits.cursor == (2, 1)
    action = edits.history.peek_undo()
    assert action is not None
    assert action.line_count == 3


def test_empty_block_insert_is_a_no_op() -> None:
    edits = make_edits(["abc"])

    assert edits.insert_text_block(0, 0, "") is EditStatus.OK
    assert len(edits.history) == 0


def test_delete_text_block_normalizes_endpoints() -> None:
    edits = make_edits(["abc", "def", "ghi"], (2, 2))

    assert edits.delete_text_block(2, 1, 0, 1) is EditStatus.OK
    assert edits.store.snapshot() == ("ahi",)
    assert edits.cursor == (0, 1)
    action = edits.history.peek_undo()
    assert action is not None
    assert action.text == "bc\ndef\ng"


def test_delete_empty_block_reports_empty_selection() -> None:
    edits = make_edits(["abc"])

    assert edits.delete_text_block(0, 1, 0, 1) is EditStatus.EMPTY_SELECTION


def test_delete_line_variants() -> None:
    middle = make_edits(["a", "b", "c"], (1, 0))
    status, text = middle.delete_line()
    assert (status, text) == (EditStatus.OK, "b")
    assert middle.store.snapshot() == ("a", "c")

    last = make_edits(["a", "b"], (1, 1))
    status, text = last.delete_line()
    assert (status, text) == (EditStatus.OK, "b")
    assert last.store.snapshot() == ("a",)

    sole = make_edits(["only"])
    status, text = sole.delete_line()
    assert (status, text) == (EditStatus.OK, "only")
    assert sole.store.snapshot() == ("",)


def test_failed_mutation_retracts_history(monkeypatch: pytest.MonkeyPatch) -> None:
    edits = make_edits(["abc"], (0, 1))

    def exhausted(*_args: object) -> EditStatus:
        raise MemoryError

    monkeypatch.setattr(edits.store, "insert_char", exhausted)

    assert edits.insert_char("x") is EditStatus.ALLOCATION_FAILURE
    assert len(edits.history) == 0
    assert edits.store.snapshot() == ("abc",)
    assert edits.cursor == (0, 1)


@pytest.mark.parametrize("col", [0, 2, 5])
def test_insert_char_then_backspace_is_identity(col: int) -> None:
    edits = make_edits(["hello"], (0, col))

    edits.insert_char("Q")
    edits.delete_backward()

    assert edits.store.snapshot() == ("hello",)
    assert edits.cursor == (0, col)


@pytest.mark.parametrize("col", [0, 2, 5])
def test_newline_then_backspace_restores_line(col: int) -> None:
    edits = make_edits(["hello"], (0, col))

    edits.insert_newline()
    assert edits.cursor == (1, 0)
    edits.delete_backward()

    assert edits.store.snapshot() == ("hello",)
    assert edits.cursor == (0, col)
