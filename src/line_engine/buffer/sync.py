"""Adapter boundary types for syncing buffers with host widgets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

from .state import Cursor, DirtyRange, SelectionRange


@dataclass(slots=True)
class BufferMirror:
    """Host-friendly snapshot describing the current buffer state."""

    lines: tuple[str, ...]
    cursor: Cursor
    selection: Optional[SelectionRange]
    dirty: Optional[DirtyRange] = None
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


class BufferSync(Protocol):
    """Protocol describing how adapters exchange data with the buffer layer."""

    def pull_buffer(self) -> BufferMirror:
        """Return the latest buffer snapshot that the host should render."""
        ...

    def push_clipboard(self, text: str) -> None:
        """Hand a host clipboard payload to the buffer (paste source)."""
        ...


class BufferValidationError(RuntimeError):
    """Raised when a position falls outside the buffer."""

    def __init__(self, message: str, *, cursor: Cursor | None = None) -> None:
        super().__init__(message)
        self.cursor = cursor
