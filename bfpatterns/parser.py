"""bfpatterns/parser.py – pattern DSL text → pattern tree.

Surface syntax
--------------
::

    # comments run to the end of the line
    move(src, dst):          # a definition header starts in column 0
        src[-dst+src]        # its body is every following indented line
    clear(c): c[-]           # ... or the text after the colon

    move(a, b) {rest}        # any other column-0 line belongs to the query

Inside a block:

* ``name`` is a variable, ``name!`` a strict variable (its cell must differ
  from the previously visited variable's);
* ``+ - . ,`` are literal operations, ``< >`` literal single moves;
* ``[ ... ]`` is a loop, ``( ... )`` a group;
* ``|`` separates alternatives of the enclosing bracket, group or block;
* ``{}`` is a wildcard, ``{name}`` a named capture;
* ``name(a, b)`` calls a definition (no space before the parenthesis).

Design principles
-----------------
* **Two stages** – a line-oriented splitter cuts the text into blocks,
  then each block body is parsed with the parsimonious grammar in
  :mod:`bfpatterns.grammar`.  Blocks are parsed on a copy of the full text
  with everything outside the block blanked out, so every offset the
  grammar reports is an offset into the original text.
* **Fail-fast with location** – every error carries a :class:`Position`.
* **Brackets first** – loop brackets are balanced before the grammar runs,
  so ``x[-y+x`` reports :class:`UnbalancedLoop` rather than a generic
  syntax error.

Public API
----------
``parse_pattern(text, *, permissive=False, filename="") -> PatternModule``
``parse_sequence(text, *, permissive=False) -> tuple of elements``
``parse_pattern_file(path, *, permissive=False) -> PatternModule``
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from parsimonious.exceptions import ParseError as PEGParseError
from parsimonious.expressions import Literal, Regex
from parsimonious.nodes import Node, NodeVisitor

from bfpatterns import ast_nodes as A
from bfpatterns.commands import LOOP_CLOSE, LOOP_OPEN, Command
from bfpatterns.errors import (
    BfPatternError,
    ErrorCodes,
    PatternSyntaxError,
    Position,
    UnbalancedLoop,
    UndefinedPattern,
)
from bfpatterns.grammar import grammar_for
from bfpatterns.visitor import calls

logger = logging.getLogger(__name__)

__all__ = ["parse_pattern", "parse_sequence", "parse_pattern_file"]


_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")
_HEADER_RE = re.compile(
    r"(?P<name>[A-Za-z_][A-Za-z0-9_]*)\s*(?:\((?P<params>[^)]*)\))?\s*:(?P<rest>.*)\Z"
)


# ═══════════════════════════════════════════════════════════════════════
#  Block splitting
# ═══════════════════════════════════════════════════════════════════════

Range = Tuple[int, int]


@dataclass
class _RawDefinition:
    name: str
    params_text: Optional[str]
    header_offset: int
    params_offset: int
    ranges: List[Range] = field(default_factory=list)


def _split_blocks(text: str) -> Tuple[List[Range], List[_RawDefinition]]:
    """Cut *text* into the main query's line ranges and raw definitions."""
    main: List[Range] = []
    definitions: List[_RawDefinition] = []
    current: Optional[_RawDefinition] = None

    offset = 0
    for line in text.splitlines(keepends=True):
        content = line.rstrip("\r\n")
        end = offset + len(content)
        if content.split("#", 1)[0].strip():
            if content[0].isspace():
                (current.ranges if current is not None else main).append((offset, end))
            else:
                header = _HEADER_RE.match(content)
                if header is not None:
                    current = _RawDefinition(
                        name=header.group("name"),
                        params_text=header.group("params"),
                        header_offset=offset,
                        params_offset=offset + (header.start("params") if header.group("params") is not None else 0),
                    )
                    current.ranges.append((offset + header.start("rest"), end))
                    definitions.append(current)
                else:
                    current = None
                    main.append((offset, end))
        offset += len(line)
    return main, definitions


def _mask(text: str, ranges: List[Range]) -> str:
    """Blank out everything in *text* outside *ranges*, keeping line breaks."""
    chars = [c if c in "\r\n" else " " for c in text]
    for start, end in ranges:
        chars[start:end] = text[start:end]
    return "".join(chars)


def _check_brackets(text: str, filename: str) -> None:
    """Raise :class:`UnbalancedLoop` unless ``[``/``]`` nest properly."""
    opened: List[int] = []
    in_comment = False
    for i, ch in enumerate(text):
        if in_comment:
            in_comment = ch != "\n"
        elif ch == "#":
            in_comment = True
        elif ch == LOOP_OPEN:
            opened.append(i)
        elif ch == LOOP_CLOSE:
            if not opened:
                raise UnbalancedLoop(Position.from_offset(text, i, filename))
            opened.pop()
    if opened:
        raise UnbalancedLoop(Position.from_offset(text, opened[-1], filename), unclosed=True)


# ═══════════════════════════════════════════════════════════════════════
#  Parse tree → pattern tree
# ═══════════════════════════════════════════════════════════════════════

class PatternTreeBuilder(NodeVisitor):
    """Transforms a parsimonious parse tree into pattern tree elements."""

    unwrapped_exceptions = (BfPatternError,)

    def __init__(self, text: str, filename: str = "") -> None:
        self._text = text
        self._filename = filename

    def _pos(self, node: Node) -> Position:
        return Position.from_offset(self._text, node.start, self._filename)

    def generic_visit(self, node, visited_children):
        if isinstance(node.expr, (Literal, Regex)):
            return node.text
        return visited_children

    # ─────────────────────────────────────────────────────────────
    # Sequences
    # ─────────────────────────────────────────────────────────────

    def visit_sequence(self, node, visited_children):
        _, alternation = visited_children
        return alternation

    def visit_alternation(self, node, visited_children):
        first, rest = visited_children
        if not rest:
            return first
        variants = (first,) + tuple(branch for _bar, branch in rest)
        return (A.Alt(variants, self._pos(node)),)

    def visit_branch(self, node, visited_children):
        elements: List[A.Element] = []
        for item in visited_children:
            if isinstance(item, tuple):
                elements.extend(item)
            else:
                elements.append(item)
        return tuple(elements)

    def visit_element(self, node, visited_children):
        (inner,), _ = visited_children
        return inner

    # ─────────────────────────────────────────────────────────────
    # Structure
    # ─────────────────────────────────────────────────────────────

    def visit_loop(self, node, visited_children):
        _, _, body, _ = visited_children
        return A.PatLoop(body, self._pos(node))

    def visit_group(self, node, visited_children):
        _, _, body, _ = visited_children
        return body

    def visit_wildcard(self, node, visited_children):
        _, _, capture, _ = visited_children
        return A.Wildcard(capture[0] if capture else None, self._pos(node))

    def visit_capture(self, node, visited_children):
        name, _ = visited_children
        return name

    # ─────────────────────────────────────────────────────────────
    # Names & calls
    # ─────────────────────────────────────────────────────────────

    def visit_call(self, node, visited_children):
        name, _, _, args, _ = visited_children
        return A.PatternCall(name, args[0] if args else (), self._pos(node))

    def visit_args(self, node, visited_children):
        first, _, rest = visited_children
        return (first,) + tuple(name for _comma, name, _ in rest)

    def visit_var(self, node, visited_children):
        name, strict = visited_children
        return A.VarRef(name, bool(strict), self._pos(node))

    def visit_name(self, node, visited_children):
        return node.text

    # ─────────────────────────────────────────────────────────────
    # Instructions
    # ─────────────────────────────────────────────────────────────

    def visit_op(self, node, visited_children):
        return A.Op(Command(node.text), self._pos(node))

    def visit_move(self, node, visited_children):
        return A.Move(Command(node.text), self._pos(node))


def _parse_block(text: str, *, permissive: bool, filename: str) -> A.Sequence:
    """Parse one masked block with the PEG grammar."""
    _check_brackets(text, filename)
    try:
        tree = grammar_for(permissive).parse(text)
    except PEGParseError as exc:
        pos = exc.pos
        if pos >= len(text):
            reason = "unexpected end of pattern"
        else:
            reason = f"unexpected {text[pos]!r}"
        raise PatternSyntaxError(reason, Position.from_offset(text, pos, filename)) from None
    return PatternTreeBuilder(text, filename).visit(tree)


def _parse_params(raw: _RawDefinition, text: str, filename: str) -> Tuple[str, ...]:
    if raw.params_text is None or not raw.params_text.strip():
        return ()
    params: List[str] = []
    for part in raw.params_text.split(","):
        name = part.strip()
        if not _NAME_RE.match(name):
            raise PatternSyntaxError(
                f"invalid parameter {name!r} in definition of {raw.name!r}",
                Position.from_offset(text, raw.params_offset, filename),
            )
        if name in params:
            raise PatternSyntaxError(
                f"duplicate parameter {name!r} in definition of {raw.name!r}",
                Position.from_offset(text, raw.params_offset, filename),
            )
        params.append(name)
    return tuple(params)


# ═══════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════

def parse_pattern(text: str, *, permissive: bool = False, filename: str = "") -> A.PatternModule:
    """Parse a complete pattern text into a :class:`PatternModule`.

    Usage::

        module = parse_pattern("move(a, b): a[-b+a]\nmove(x, y)")
        module.definitions["move"].params   # ('a', 'b')

    Raises
    ------
    UnbalancedLoop
        Loop brackets do not nest.
    PatternSyntaxError
        Malformed text, duplicate definitions or parameters.
    UndefinedPattern
        A call names a pattern that is never defined.
    """
    main_ranges, raw_definitions = _split_blocks(text)

    definitions: Dict[str, A.PatternDef] = {}
    for raw in raw_definitions:
        header_pos = Position.from_offset(text, raw.header_offset, filename)
        if raw.name in definitions:
            raise PatternSyntaxError(
                f"pattern {raw.name!r} is defined twice",
                header_pos,
                code=ErrorCodes.DUPLICATE_PATTERN,
            )
        params = _parse_params(raw, text, filename)
        body = _parse_block(_mask(text, raw.ranges), permissive=permissive, filename=filename)
        definitions[raw.name] = A.PatternDef(raw.name, params, body, header_pos)
        logger.debug("parsed definition %s(%s)", raw.name, ", ".join(params))

    main = _parse_block(_mask(text, main_ranges), permissive=permissive, filename=filename)

    bodies = [main] + [d.body for d in definitions.values()]
    for body in bodies:
        for call in calls(body):
            if call.name not in definitions:
                raise UndefinedPattern(call.name, call.loc)

    logger.debug(
        "parsed pattern: %d definition(s), %d top-level element(s)",
        len(definitions), len(main),
    )
    return A.PatternModule(definitions, main, filename or None)


def parse_sequence(text: str, *, permissive: bool = False, filename: str = "") -> A.Sequence:
    """Parse a single block body (no definitions) into a tuple of elements."""
    return _parse_block(text, permissive=permissive, filename=filename)


def parse_pattern_file(path, *, permissive: bool = False) -> A.PatternModule:
    with open(path, encoding="utf-8") as fh:
        text = fh.read()
    return parse_pattern(text, permissive=permissive, filename=str(path))
