from __future__ import annotations

import pytest

from line_engine.buffer import (
    BufferState,
    BufferValidationError,
    Clipboard,
    EditOperations,
    EditStatus,
    LineStore,
    SelectionModel,
    UndoRedoStack,
    normalize,
)
from line_engine.buffer.selection import extract, range_contains


def make_selection(lines: list[str]) -> tuple[SelectionModel, EditOperations]:
    store = LineStore(lines)
    state = BufferState()
    edits = EditOperations(store, state, UndoRedoStack())
    return SelectionModel(store, state), edits


@pytest.mark.parametrize(
    "a, b",
    [((0, 3), (0, 1)), ((2, 0), (1, 5)), ((1, 1), (1, 1)), ((0, 9), (3, 0))],
)
def test_normalize_is_symmetric(a: tuple[int, int], b: tuple[int, int]) -> None:
    assert normalize(a, b) == normalize(b, a)
    start, end = normalize(a, b)
    assert start <= end


def test_range_contains_is_half_open() -> None:
    selection = ((0, 2), (2, 1))

    assert range_contains(selection, 0, 2)
    assert not range_contains(selection, 0, 1)
    assert range_contains(selection, 1, 100)
    assert range_contains(selection, 2, 0)
    assert not range_contains(selection, 2, 1)
    assert not range_contains(selection, 3, 0)


def test_extract_joins_rows_with_newlines() -> None:
    store = LineStore(["hello", "big", "world"])

    assert extract(store, (2, 3), (0, 3)) == "lo\nbig\nwor"
    assert extract(store, (1, 1), (1, 1)) == ""
    with pytest.raises(BufferValidationError):
        extract(store, (0, 0), (5, 0))


def test_toggle_anchors_at_cursor() -> None:
    selection, edits = make_selection(["abc"])
    edits.cursor = (0, 1)

    assert selection.toggle() is True
    edits.cursor = (0, 3)
    assert selection.range() == ((0, 1), (0, 3))
    assert selection.text() == "bc"
    assert selection.contains(0, 2)

    assert selection.toggle() is False
    assert selection.range() is None


def test_copy_empty_selection_reports_status() -> None:
    selection, _ = make_selection(["abc"])
    clipboard = Clipboard()
    selection.begin()

    assert selection.copy(clipboard) is EditStatus.EMPTY_SELECTION
    assert clipboard.empty


def test_cut_removes_text_and_fills_clipboard() -> None:
    selection, edits = make_selection(["hello", "world"])
    clipboard = Clipboard()
    selection.begin((0, 3))
    edits.cursor = (1, 2)

    assert selection.cut(edits, clipboard) is EditStatus.OK
    assert clipboard.text == "lo\nwo"
    assert edits.store.snapshot() == ("helrld",)
    assert edits.cursor == (0, 3)
    assert selection.active is False


def test_delete_without_selection() -> None:
    selection, edits = make_selection(["abc"])

    assert selection.delete(edits) is EditStatus.EMPTY_SELECTION
