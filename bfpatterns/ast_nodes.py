# bfpatterns/ast_nodes.py
"""
Pattern tree node definitions.

Every node carries its source position for error reporting.  Nodes are
frozen: a parsed (and expanded) pattern can be shared between matches.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple, Union

from bfpatterns.commands import Command
from bfpatterns.errors import Position


# ── Base ─────────────────────────────────────────────────────────

def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


class PatternNode:
    """Base class for pattern tree nodes; dispatches to ``visit_<snake_name>``."""

    def accept(self, visitor: Any) -> Any:
        method = getattr(visitor, f"visit_{_snake(type(self).__name__)}", visitor.generic_visit)
        return method(self)


# ── Elements ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class VarRef(PatternNode):
    """A named tape position; binds on first sight, constrains afterwards.

    A strict reference (``x!``) must land on a different cell from the
    previous variable, or from the starting head if it comes first.
    """
    name: str
    strict: bool = False
    loc: Position = field(default_factory=Position, compare=False, repr=False)

    def __str__(self) -> str:
        return self.name + ("!" if self.strict else "")


@dataclass(frozen=True)
class Op(PatternNode):
    """A literal ``+ - . ,``."""
    command: Command
    loc: Position = field(default_factory=Position, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.command.is_move:
            raise ValueError(f"Op cannot hold a move command: {self.command!r}")

    def __str__(self) -> str:
        return self.command.value


@dataclass(frozen=True)
class Move(PatternNode):
    """A literal single ``<`` or ``>`` step."""
    command: Command
    loc: Position = field(default_factory=Position, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.command.is_move:
            raise ValueError(f"Move must hold a move command: {self.command!r}")

    def __str__(self) -> str:
        return self.command.value


@dataclass(frozen=True)
class PatLoop(PatternNode):
    body: Tuple["Element", ...]
    loc: Position = field(default_factory=Position, compare=False, repr=False)

    def __str__(self) -> str:
        return "[" + render_sequence(self.body) + "]"


@dataclass(frozen=True)
class Alt(PatternNode):
    """Ordered alternatives; the first variant that lets the rest match wins."""
    variants: Tuple[Tuple["Element", ...], ...]
    loc: Position = field(default_factory=Position, compare=False, repr=False)

    def __str__(self) -> str:
        return "(" + " | ".join(render_sequence(v) for v in self.variants) + ")"


@dataclass(frozen=True)
class Wildcard(PatternNode):
    capture: Optional[str] = None
    loc: Position = field(default_factory=Position, compare=False, repr=False)

    def __str__(self) -> str:
        return "{" + (self.capture or "") + "}"


@dataclass(frozen=True)
class PatternCall(PatternNode):
    name: str
    args: Tuple[str, ...] = ()
    loc: Position = field(default_factory=Position, compare=False, repr=False)

    def __str__(self) -> str:
        return f"{self.name}({', '.join(self.args)})"


Element = Union[VarRef, Op, Move, PatLoop, Alt, Wildcard, PatternCall]
Sequence = Tuple[Element, ...]


# ── Definitions & module ─────────────────────────────────────────

@dataclass(frozen=True)
class PatternDef(PatternNode):
    name: str
    params: Tuple[str, ...]
    body: Sequence
    loc: Position = field(default_factory=Position, compare=False, repr=False)

    def __str__(self) -> str:
        return f"{self.name}({', '.join(self.params)}): {render_sequence(self.body)}"


@dataclass(frozen=True)
class PatternModule(PatternNode):
    """Result of parsing pattern text: named definitions plus the main query."""
    definitions: Mapping[str, PatternDef] = field(default_factory=dict)
    main: Sequence = ()
    source_path: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.definitions, MappingProxyType):
            object.__setattr__(self, "definitions", MappingProxyType(dict(self.definitions)))


def render_sequence(elements) -> str:
    """Pattern text for a sequence of elements."""
    parts = []
    prev_word = False
    for el in elements:
        text = str(el)
        word = isinstance(el, (VarRef, PatternCall))
        # A name directly before another name or a '(' would read as one token.
        if prev_word and (word or isinstance(el, Alt)):
            parts.append(" ")
        parts.append(text)
        prev_word = word
    return "".join(parts)


__all__ = [
    "PatternNode",
    "VarRef",
    "Op",
    "Move",
    "PatLoop",
    "Alt",
    "Wildcard",
    "PatternCall",
    "Element",
    "Sequence",
    "PatternDef",
    "PatternModule",
    "render_sequence",
]
