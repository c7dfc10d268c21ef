"""Line storage, reversible edits, selection and undo/redo history."""

from .document import Line, LineStore, split_lines
from .edits import EditOperations
from .registers import Clipboard, RegisterValue
from .results import EditResult, EditStatus
from .selection import SelectionModel, normalize
from .session import EditorSession, Transaction
from .state import BufferState, DirtyRange, DirtyTracker
from .sync import BufferMirror, BufferSync, BufferValidationError
from .undo import HistoryState, UndoAction, UndoKind, UndoRedoStack
from .validation import ensure_cursor

__all__ = [
    "Line",
    "LineStore",
    "split_lines",
    "EditOperations",
    "Clipboard",
    "RegisterValue",
    "EditResult",
    "EditStatus",
    "SelectionModel",
    "normalize",
    "EditorSession",
    "Transaction",
    "BufferState",
    "DirtyRange",
    "DirtyTracker",
    "BufferMirror",
    "BufferSync",
    "BufferValidationError",
    "HistoryState",
    "UndoAction",
    "UndoKind",
    "UndoRedoStack",
    "ensure_cursor",
]
