"""Discriminated outcomes returned by every buffer operation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class EditStatus(str, Enum):
    OK = "ok"
    OUT_OF_BOUNDS = "out_of_bounds"
    ALLOCATION_FAILURE = "allocation_failure"
    EMPTY_HISTORY = "empty_history"
    EMPTY_SELECTION = "empty_selection"
    EMPTY_CLIPBOARD = "empty_clipboard"
    NOT_FOUND = "not_found"

    @property
    def ok(self) -> bool:
        return self is EditStatus.OK


@dataclass(frozen=True, slots=True)
class EditResult:
    """Result returned from session operations."""

    status: EditStatus = EditStatus.OK
    message: Optional[str] = None
    # Number of items affected (characters copied, occurrences replaced, ...)
    count: int = 0

    @property
    def ok(self) -> bool:
        return self.status.ok

    @classmethod
    def success(cls, message: Optional[str] = None, *, count: int = 0) -> "EditResult":
        return cls(EditStatus.OK, message, count)

    @classmethod
    def failure(cls, status: EditStatus, message: Optional[str] = None) -> "EditResult":
        return cls(status, message)
