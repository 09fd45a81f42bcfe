# bfpatterns/source.py
"""
Concrete parser: brainfuck text → instruction forest.

Every character outside ``+ - < > . , [ ]`` is a comment.  In strict mode
(``permissive=False``) only whitespace may appear besides instructions.
Loop brackets are checked as they are read: a ``]`` with no open ``[``
fails at the ``]``, and a ``[`` still open at end of input fails at that
``[``.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from bfpatterns.commands import LOOP_CLOSE, LOOP_OPEN, Code, Command, Instruction, Loop, Node
from bfpatterns.errors import InvalidCharacter, Position, UnbalancedLoop

logger = logging.getLogger(__name__)

__all__ = ["parse_code", "parse_code_file"]


def parse_code(text: str, *, permissive: bool = True, filename: str = "") -> Code:
    """Parse *text* into a tuple of :class:`Instruction` / :class:`Loop` nodes.

    Raises
    ------
    UnbalancedLoop
        On a stray ``]`` or an unclosed ``[``.
    InvalidCharacter
        On an unknown non-whitespace character when *permissive* is false.
    """
    # Each frame is (position of its '[', nodes collected so far).
    stack: List[Tuple[Position, List[Node]]] = []
    current: List[Node] = []
    pos = Position(file=filename)

    for ch in text:
        if ch == LOOP_OPEN:
            stack.append((pos, current))
            current = []
        elif ch == LOOP_CLOSE:
            if not stack:
                raise UnbalancedLoop(pos)
            open_pos, outer = stack.pop()
            outer.append(Loop(tuple(current), open_pos))
            current = outer
        else:
            command = Command.from_char(ch)
            if command is not None:
                current.append(Instruction(command, pos))
            elif not permissive and not ch.isspace():
                raise InvalidCharacter(ch, pos)
        pos = pos.advance(ch)

    if stack:
        open_pos, _ = stack[-1]
        raise UnbalancedLoop(open_pos, unclosed=True)

    logger.debug("parsed %d top-level node(s) from %s", len(current), filename or "<code>")
    return tuple(current)


def parse_code_file(path, *, permissive: bool = True) -> Code:
    """Read *path* as UTF-8 and parse it.

    Undecodable bytes become U+FFFD; outside the eight commands they are
    comments (or an unknown character in strict mode).
    """
    with open(path, encoding="utf-8", errors="replace") as fh:
        text = fh.read()
    return parse_code(text, permissive=permissive, filename=str(path))
