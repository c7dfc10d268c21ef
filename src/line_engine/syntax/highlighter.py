"""Heuristic lexical tagging with a revision-keyed per-line cache."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, List, Optional, Tuple

from line_engine.runtime import telemetry

if TYPE_CHECKING:
    from line_engine.buffer.document import LineStore


class HighlightTag(IntEnum):
    NORMAL = 0
    COMMENT = 1
    STRING = 2
    NUMBER = 3
    OPERATOR = 4
    KEYWORD = 5


Tags = Tuple[HighlightTag, ...]

QUOTES = frozenset("'\"`")
SINGLE_OPERATORS = frozenset("+-*/%=<>!&|^~?:;,.()[]{}")
DOUBLE_OPERATORS = frozenset(
    {
        "==", "!=", "&&", "||", "++", "--", "<=", ">=", "<<", ">>",
        "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "->",
    }
)
HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_word(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _number_end(text: str, start: int) -> int:
    """Index one past the numeric literal starting at ``start``."""

    n = len(text)
    i = start
    is_hex = False
    while i < n:
        ch = text[i]
        prev = text[i - 1] if i > start else ""
        if _is_digit(ch) or ch == ".":
            i += 1
        elif ch in "xX" and text[start:i] == "0":
            is_hex = True
            i += 1
        elif is_hex and ch in HEX_DIGITS:
            i += 1
        elif ch in "eE":
            i += 1
        elif ch in "+-" and prev in ("e", "E") and not is_hex:
            i += 1
        elif ch in "fF":
            # float suffix ends the literal
            i += 1
            break
        else:
            break
    return i


def highlight_line(text: str, in_block_comment: bool = False) -> Tuple[Tags, bool]:
    """Classify every character of ``text``.

    Returns the tags and whether a ``/* ... */`` comment is still open at the
    end of the line. That flag is the only state carried between lines.
    """

    n = len(text)
    tags: List[HighlightTag] = [HighlightTag.NORMAL] * n
    in_comment = in_block_comment
    quote: Optional[str] = None
    i = 0

    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""

        if in_comment:
            tags[i] = HighlightTag.COMMENT
            if ch == "*" and nxt == "/":
                tags[i + 1] = HighlightTag.COMMENT
                in_comment = False
                i += 2
            else:
                i += 1
            continue

        if quote is not None:
            tags[i] = HighlightTag.STRING
            if ch == "\\" and nxt:
                tags[i + 1] = HighlightTag.STRING
                i += 2
                continue
            if ch == quote:
                quote = None
            i += 1
            continue

        if ch in QUOTES:
            quote = ch
            tags[i] = HighlightTag.STRING
            i += 1
        elif (ch == "/" and nxt == "/") or ch == "#":
            tags[i:] = [HighlightTag.COMMENT] * (n - i)
            break
        elif ch == "/" and nxt == "*":
            tags[i] = tags[i + 1] = HighlightTag.COMMENT
            in_comment = True
            i += 2
        elif _is_digit(ch):
            end = _number_end(text, i)
            tags[i:end] = [HighlightTag.NUMBER] * (end - i)
            i = end
        elif ch + nxt in DOUBLE_OPERATORS:
            tags[i] = tags[i + 1] = HighlightTag.OPERATOR
            i += 2
        elif ch in SINGLE_OPERATORS:
            tags[i] = HighlightTag.OPERATOR
            i += 1
        elif _is_word(ch):
            start = i
            while i < n and _is_word(text[i]):
                i += 1
            # Naive keyword rule: the first token on the line.
            if not text[:start].strip():
                tags[start:i] = [HighlightTag.KEYWORD] * (i - start)
        else:
            i += 1

    return tuple(tags), in_comment


@dataclass(frozen=True, slots=True)
class LineHighlight:
    """Cached scan result attached to a :class:`~line_engine.buffer.document.Line`."""

    revision: int
    incoming: bool
    outgoing: bool
    tags: Tags
    code_mode: bool


class Highlighter:
    """Lazily tags lines of a store, reusing cached scans where valid.

    A cached scan is reused only when the line's revision is unchanged *and*
    it was computed with the same incoming block-comment state. Rows above
    the ``known_good`` watermark were verified in document order and have
    not changed since, so a request resumes from the watermark (or from its
    own start row, if lower) instead of from row 0. A line is never tagged
    from a state that skipped an unscanned region above it.
    """

    def __init__(
        self,
        store: "LineStore",
        *,
        code_mode: bool = False,
        logger_name: str | None = None,
    ) -> None:
        self.store = store
        self._code_mode = code_mode
        self._logger_name = logger_name
        self._known_good = 0
        self.scans = 0

    @property
    def code_mode(self) -> bool:
        return self._code_mode

    def set_code_mode(self, enabled: bool) -> None:
        if enabled == self._code_mode:
            return
        self._code_mode = enabled
        for line in self.store:
            line.highlight = None
        self._known_good = 0
        telemetry.record_event(
            "highlight.mode",
            data={"code_mode": enabled},
            logger_name=self._logger_name,
        )

    @property
    def known_good(self) -> int:
        """Number of leading rows whose cached tags are verified current."""

        changed = self.store.take_changed_from()
        if changed is not None:
            self._known_good = min(self._known_good, changed)
        return min(self._known_good, len(self.store))

    def tags_for(self, row: int) -> Tags:
        ranged = self.highlight_range(row, row)
        return ranged[0] if ranged else ()

    def highlight_range(self, start: int, end: int) -> List[Tags]:
        """Tags for rows ``start..end`` inclusive, clamped to the store."""

        if start < 0 or start >= len(self.store) or end < start:
            return []
        end = min(end, len(self.store) - 1)
        first = min(start, self.known_good)
        state = self._incoming(first)
        rescanned = 0
        result: List[Tags] = []
        for row in range(first, end + 1):
            line = self.store.line(row)
            cached = line.highlight
            if (
                cached is None
                or cached.revision != line.revision
                or cached.incoming != state
                or cached.code_mode != self._code_mode
            ):
                cached = self._scan(line.text, line.revision, state)
                line.highlight = cached
                rescanned += 1
            if row >= start:
                result.append(cached.tags)
            state = cached.outgoing
        self.scans += rescanned
        self._known_good = max(self._known_good, end + 1)
        return result

    def _incoming(self, row: int) -> bool:
        if row == 0:
            return False
        cached = self.store.line(row - 1).highlight
        return bool(cached and cached.outgoing)

    def block_comment_state(self, row: int) -> bool:
        """Whether a block comment is open at the *start* of ``row``."""

        if row <= 0:
            return False
        self.highlight_range(row - 1, row - 1)
        cached = self.store.line(row - 1).highlight
        return bool(cached and cached.outgoing)

    def _scan(self, text: str, revision: int, incoming: bool) -> LineHighlight:
        if not self._code_mode:
            return LineHighlight(
                revision=revision,
                incoming=incoming,
                outgoing=False,
                tags=(HighlightTag.NORMAL,) * len(text),
                code_mode=False,
            )
        tags, outgoing = highlight_line(text, incoming)
        return LineHighlight(
            revision=revision,
            incoming=incoming,
            outgoing=outgoing,
            tags=tags,
            code_mode=True,
        )

