# bfpatterns/errors.py
"""
Error types and source positions for the bfpatterns toolchain.

Error Hierarchy:
────────────────
┌──────────────────────────────────────────────────────────────────────┐
│  BfPatternError (base)                                               │
│  ├── ParseError              - text could not be turned into a tree  │
│  │   ├── UnbalancedLoop      - '[' / ']' nesting is malformed        │
│  │   ├── InvalidCharacter    - stray character in strict mode        │
│  │   └── PatternSyntaxError  - malformed pattern DSL                 │
│  │       └── UndefinedPattern                                        │
│  ├── ExpansionError          - named-pattern misuse                  │
│  │   ├── RecursionLimitExceeded                                      │
│  │   └── ArityMismatch                                               │
│  └── MatchBudgetExceeded     - the matcher gave up searching         │
└──────────────────────────────────────────────────────────────────────┘

Local mismatches found while matching (an ``Op`` that does not line up,
an offset that disagrees with an earlier binding, a loop that does not
close) are *not* exceptions.  They are ordinary values, see
:class:`bfpatterns.matcher.MatchFailure`.

Error Codes:
────────────
Every error carries a code ``BFP-NNNN``:
  - 1000-1999: Parse errors (concrete code and pattern text)
  - 2000-2999: Expansion errors
  - 3000-3999: Matching resource errors
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE POSITIONS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Position:
    """A 1-based line/column location plus the 0-based character offset."""

    line: int = 1
    column: int = 1
    offset: int = 0
    file: str = ""

    @classmethod
    def from_offset(cls, text: str, offset: int, file: str = "") -> "Position":
        """Compute the line/column of *offset* inside *text*."""
        offset = max(0, min(offset, len(text)))
        line = text.count("\n", 0, offset) + 1
        last_newline = text.rfind("\n", 0, offset)
        column = offset - last_newline
        return cls(line=line, column=column, offset=offset, file=file)

    def advance(self, ch: str) -> "Position":
        """Return the position just after *ch*."""
        if ch == "\n":
            return Position(self.line + 1, 1, self.offset + 1, self.file)
        return Position(self.line, self.column + 1, self.offset + 1, self.file)

    def __str__(self) -> str:
        if self.file:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorPhase(enum.Enum):
    """The pipeline phase an error was raised in."""
    PARSE = "parse"
    EXPANSION = "expansion"
    MATCH = "match"


class ErrorCode:
    """
    Structured error code ``BFP-NNNN``.

    Codes compare equal to their string form so callers can write
    ``err.code == "BFP-1001"``.
    """

    __slots__ = ("number", "phase", "title")

    def __init__(self, number: int, phase: ErrorPhase, title: str) -> None:
        self.number = number
        self.phase = phase
        self.title = title

    @property
    def code(self) -> str:
        return f"BFP-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.title!r})"

    def __hash__(self) -> int:
        return hash(self.number)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class ErrorCodes:
    """Predefined error codes."""

    UNBALANCED_LOOP = ErrorCode(1001, ErrorPhase.PARSE, "unbalanced loop")
    INVALID_CHARACTER = ErrorCode(1002, ErrorPhase.PARSE, "invalid character")
    PATTERN_SYNTAX = ErrorCode(1003, ErrorPhase.PARSE, "pattern syntax error")
    UNDEFINED_PATTERN = ErrorCode(1004, ErrorPhase.PARSE, "undefined pattern")
    DUPLICATE_PATTERN = ErrorCode(1005, ErrorPhase.PARSE, "duplicate pattern")

    RECURSION_LIMIT = ErrorCode(2001, ErrorPhase.EXPANSION, "recursion limit exceeded")
    ARITY_MISMATCH = ErrorCode(2002, ErrorPhase.EXPANSION, "wrong number of arguments")

    MATCH_BUDGET = ErrorCode(3001, ErrorPhase.MATCH, "match budget exceeded")


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class BfPatternError(Exception):
    """
    Base exception for all bfpatterns errors.

    Carries a structured code, an optional source position and an
    optional hint; ``str()`` renders a GCC-style one-line message.
    """

    default_code: ErrorCode = ErrorCodes.PATTERN_SYNTAX

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        position: Optional[Position] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.position = position
        self.hint = hint

    @property
    def phase(self) -> ErrorPhase:
        return self.code.phase

    def to_gcc_format(self) -> str:
        """Format as ``file:line:col: error[BFP-NNNN]: message``."""
        prefix = f"{self.position}: " if self.position is not None else ""
        text = f"{prefix}error[{self.code}]: {self.message}"
        if self.hint:
            text += f" (hint: {self.hint})"
        return text

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "code": str(self.code),
            "phase": self.phase.value,
            "message": self.message,
        }
        if self.position is not None:
            data["line"] = self.position.line
            data["column"] = self.position.column
            if self.position.file:
                data["file"] = self.position.file
        if self.hint:
            data["hint"] = self.hint
        return data

    def __str__(self) -> str:
        return self.to_gcc_format()


# ───────────────────────────────────────────────────────────────────────────────
# PARSE ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class ParseError(BfPatternError):
    """Input text could not be parsed."""


class UnbalancedLoop(ParseError):
    """A ``]`` without a matching ``[``, or a ``[`` left open at end of input."""

    default_code = ErrorCodes.UNBALANCED_LOOP

    def __init__(self, position: Optional[Position] = None, unclosed: bool = False) -> None:
        if unclosed:
            message = "unclosed loop: '[' has no matching ']'"
        else:
            message = "unmatched loop closing: ']' has no matching '['"
        super().__init__(message, position=position)
        self.unclosed = unclosed


class InvalidCharacter(ParseError):
    """A character outside the accepted alphabet, rejected in strict mode."""

    default_code = ErrorCodes.INVALID_CHARACTER

    def __init__(self, char: str, position: Optional[Position] = None) -> None:
        if len(char) == 1 and not char.isprintable():
            desc = f"U+{ord(char):04X}"
        else:
            desc = repr(char)
        super().__init__(
            f"invalid character {desc}",
            position=position,
            hint="enable permissive mode to ignore unknown characters",
        )
        self.char = char


class PatternSyntaxError(ParseError):
    """Malformed pattern DSL text."""

    default_code = ErrorCodes.PATTERN_SYNTAX

    def __init__(
        self,
        reason: str,
        position: Optional[Position] = None,
        code: Optional[ErrorCode] = None,
    ) -> None:
        super().__init__(reason, code=code, position=position)
        self.reason = reason


class UndefinedPattern(PatternSyntaxError):
    """A call references a pattern name that has no definition."""

    default_code = ErrorCodes.UNDEFINED_PATTERN

    def __init__(self, name: str, position: Optional[Position] = None) -> None:
        super().__init__(f"undefined pattern {name!r}", position=position)
        self.name = name


# ───────────────────────────────────────────────────────────────────────────────
# EXPANSION ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class ExpansionError(BfPatternError):
    """A named pattern could not be inlined."""

    default_code = ErrorCodes.RECURSION_LIMIT


class RecursionLimitExceeded(ExpansionError):
    """Expansion nested deeper than the configured limit."""

    default_code = ErrorCodes.RECURSION_LIMIT

    def __init__(self, name: str, depth: int, position: Optional[Position] = None) -> None:
        super().__init__(
            f"expansion of {name!r} exceeded depth {depth}",
            position=position,
            hint="self-referential pattern definitions are not supported",
        )
        self.name = name
        self.depth = depth


class ArityMismatch(ExpansionError):
    """A call passes a different number of arguments than the definition declares."""

    default_code = ErrorCodes.ARITY_MISMATCH

    def __init__(
        self,
        name: str,
        expected: int,
        got: int,
        position: Optional[Position] = None,
    ) -> None:
        super().__init__(
            f"pattern {name!r} takes {expected} argument(s), got {got}",
            position=position,
        )
        self.name = name
        self.expected = expected
        self.got = got


# ───────────────────────────────────────────────────────────────────────────────
# MATCH ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class MatchBudgetExceeded(BfPatternError):
    """The matcher spent its step budget without reaching a verdict."""

    default_code = ErrorCodes.MATCH_BUDGET

    def __init__(self, steps: int) -> None:
        super().__init__(
            f"search gave up after {steps} steps",
            hint="raise max_steps to search further",
        )
        self.steps = steps


__all__ = [
    "Position",
    "ErrorPhase",
    "ErrorCode",
    "ErrorCodes",
    "BfPatternError",
    "ParseError",
    "UnbalancedLoop",
    "InvalidCharacter",
    "PatternSyntaxError",
    "UndefinedPattern",
    "ExpansionError",
    "RecursionLimitExceeded",
    "ArityMismatch",
    "MatchBudgetExceeded",
]
