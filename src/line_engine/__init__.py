"""UI-agnostic line-oriented text editing engine."""

__all__ = [
    "buffer",
    "config",
    "runtime",
    "syntax",
]

__version__ = "0.1.0"
