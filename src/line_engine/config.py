"""Session configuration and defaults."""

from __future__ import annotations

from dataclasses import dataclass

from line_engine.runtime.telemetry import env_flag, env_int

DEFAULT_UNDO_CAPACITY = 100
DEFAULT_TAB_STOP = 4


@dataclass(frozen=True, slots=True)
class EditorConfig:
    """Tunables for an editing session."""

    undo_capacity: int = DEFAULT_UNDO_CAPACITY
    tab_stop: int = DEFAULT_TAB_STOP
    # Plain text documents are never classified.
    code_mode: bool = False

    def __post_init__(self) -> None:
        if self.undo_capacity < 1:
            raise ValueError("undo_capacity must be at least 1")
        if self.tab_stop < 1:
            raise ValueError("tab_stop must be at least 1")

    @classmethod
    def from_env(cls, **overrides: object) -> "EditorConfig":
        """Build a config from ``LINE_ENGINE_*`` variables, then apply overrides."""

        values: dict[str, object] = {
            "undo_capacity": env_int("UNDO_CAPACITY", DEFAULT_UNDO_CAPACITY),
            "tab_stop": env_int("TAB_STOP", DEFAULT_TAB_STOP),
            "code_mode": env_flag("CODE_MODE", False),
        }
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]
