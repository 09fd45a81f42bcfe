# bfpatterns/commands.py
"""
The brainfuck instruction vocabulary shared by concrete code and patterns.

Concrete code is an immutable forest: a tuple of :class:`Instruction` and
:class:`Loop` nodes, where a loop owns the tuple of nodes between its
brackets.  Source positions ride along for diagnostics but never take
part in equality, so two spans with the same text compare equal wherever
they came from.
"""

from __future__ import annotations

import enum
import itertools
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from bfpatterns.errors import Position

__all__ = [
    "Command",
    "Instruction",
    "Loop",
    "Node",
    "Code",
    "LOOP_OPEN",
    "LOOP_CLOSE",
    "render",
    "displacement",
    "iter_flat",
    "count_instructions",
]

LOOP_OPEN = "["
LOOP_CLOSE = "]"

_DONE = object()


class Command(enum.Enum):
    """A non-loop instruction, valued by its glyph."""

    INCREMENT = "+"
    DECREMENT = "-"
    MOVE_RIGHT = ">"
    MOVE_LEFT = "<"
    INPUT = ","
    OUTPUT = "."

    @classmethod
    def from_char(cls, ch: str) -> Optional["Command"]:
        try:
            return cls(ch)
        except ValueError:
            return None

    @property
    def is_move(self) -> bool:
        return self in (Command.MOVE_RIGHT, Command.MOVE_LEFT)

    @property
    def step(self) -> int:
        """Head displacement caused by this command."""
        if self is Command.MOVE_RIGHT:
            return 1
        if self is Command.MOVE_LEFT:
            return -1
        return 0

    @property
    def label(self) -> str:
        """Short lowercase name, used by the S-expression dump."""
        return _LABELS[self]

    def __str__(self) -> str:
        return self.value


_LABELS = {
    Command.INCREMENT: "inc",
    Command.DECREMENT: "dec",
    Command.MOVE_RIGHT: "right",
    Command.MOVE_LEFT: "left",
    Command.INPUT: "in",
    Command.OUTPUT: "out",
}


@dataclass(frozen=True)
class Instruction:
    command: Command
    position: Position = field(default_factory=Position, compare=False, repr=False)

    @property
    def is_move(self) -> bool:
        return self.command.is_move

    def __str__(self) -> str:
        return self.command.value


@dataclass(frozen=True)
class Loop:
    body: Tuple["Node", ...]
    position: Position = field(default_factory=Position, compare=False, repr=False)

    is_move = False

    def __str__(self) -> str:
        return render((self,))


Node = Union[Instruction, Loop]
Code = Tuple[Node, ...]


def render(nodes: Iterable[Node]) -> str:
    """Instruction text of *nodes* (loops rendered with their brackets)."""
    parts: List[str] = []
    # Each frame is an iterator over one loop body; None closes that loop.
    stack: List[Iterator[Optional[Node]]] = [iter(nodes)]
    while stack:
        node = next(stack[-1], _DONE)
        if node is _DONE:
            stack.pop()
        elif node is None:
            parts.append(LOOP_CLOSE)
        elif isinstance(node, Loop):
            parts.append(LOOP_OPEN)
            stack.append(itertools.chain(node.body, (None,)))
        else:
            parts.append(node.command.value)
    return "".join(parts)


def displacement(nodes: Iterable[Node]) -> int:
    """Net head movement of the top-level moves in *nodes*.

    Loops are taken as a whole and assumed to return the head to where
    they started.
    """
    return sum(n.command.step for n in nodes if isinstance(n, Instruction))


def iter_flat(nodes: Iterable[Node]) -> Iterator[Instruction]:
    """Yield every instruction in *nodes*, descending into loop bodies."""
    stack: List[Iterator[Node]] = [iter(nodes)]
    while stack:
        node = next(stack[-1], _DONE)
        if node is _DONE:
            stack.pop()
        elif isinstance(node, Loop):
            stack.append(iter(node.body))
        else:
            yield node


def count_instructions(nodes: Iterable[Node]) -> int:
    """Number of characters *nodes* spans, brackets included."""
    total = 0
    pending: List[Iterable[Node]] = [nodes]
    while pending:
        for node in pending.pop():
            if isinstance(node, Loop):
                total += 2
                pending.append(node.body)
            else:
                total += 1
    return total
