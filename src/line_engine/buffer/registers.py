"""Internal clipboard register used by copy, cut and paste."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class RegisterValue:
    text: str
    type: str = "character"  # "character" for selections, "line" for whole lines

    @property
    def line_count(self) -> int:
        return self.text.count("\n") + 1


class Clipboard:
    """Holds the last copied payload as one newline-joined string."""

    def __init__(self) -> None:
        self._value: Optional[RegisterValue] = None

    @property
    def empty(self) -> bool:
        return self._value is None or not self._value.text

    def get(self) -> Optional[RegisterValue]:
        return self._value

    @property
    def text(self) -> str:
        return self._value.text if self._value else ""

    def set(self, text: str, *, register_type: str = "character") -> None:
        self._value = RegisterValue(text=text, type=register_type)

    def clear(self) -> None:
        self._value = None
