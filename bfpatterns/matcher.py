"""
bfpatterns/matcher.py
=====================

Structural matcher: pattern tree × concrete instruction forest → bindings.

The engine walks both trees together.  The concrete side is tracked by an
index into the current nesting level plus a head position (``>`` is +1,
``<`` is −1, starting at 0 for the tape origin); the pattern side only
ever knows "the last variable it visited".  Variables absorb the run of
moves in front of them, so a pattern never spells out distances:

    pattern  x[-y+x]      code  >>>[-<<<+>>>]      →  x = 0, y = -3

Backtracking
------------
Each pattern element is matched by a generator that lazily yields every
way it can succeed: ``(next_index, state)`` pairs.  A sequence keeps an
explicit stack of those generators (one per element, i.e. one choice
point per element) and pulls the next candidate from the top of the stack
whenever a later element runs dry.  So an ``Alt`` variant or a wildcard
length that matched locally but doomed the rest of the sequence is
retried with the next candidate, not committed to.

States are immutable; a candidate never sees bindings made on another
branch, which is all the rollback the search needs.

Failure reporting
-----------------
Local mismatches are recorded, not raised.  The reported failure is the
one that got furthest into the concrete code (first one on ties).  The
only exception that leaves a search is :class:`MatchBudgetExceeded`, and
:func:`match` turns it into a distinct outcome.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping as MappingABC
from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

from bfpatterns import ast_nodes as A
from bfpatterns.commands import Code, Instruction, Loop, count_instructions, displacement, render
from bfpatterns.config import DEFAULT_CONFIG, MatcherConfig
from bfpatterns.errors import MatchBudgetExceeded, Position
from bfpatterns.expander import expand
from bfpatterns.parser import parse_pattern
from bfpatterns.source import parse_code

logger = logging.getLogger(__name__)

__all__ = [
    "FailureKind",
    "MatchFailure",
    "BindingTable",
    "MatchResult",
    "Matcher",
    "match",
    "find_all",
]


# ===================================================================== #
#  Outcomes                                                              #
# ===================================================================== #

class FailureKind(enum.Enum):
    """Why a match attempt failed."""
    OP_MISMATCH = "OpMismatch"
    OFFSET_MISMATCH = "OffsetMismatch"
    STRUCTURAL_MISMATCH = "StructuralMismatch"
    BUDGET_EXCEEDED = "MatchBudgetExceeded"


@dataclass(frozen=True)
class MatchFailure:
    kind: FailureKind
    reason: str
    position: Optional[Position] = None
    element: Optional[str] = None
    consumed: int = 0

    def __str__(self) -> str:
        where = f"{self.position}: " if self.position is not None else ""
        at = f" (at pattern element {self.element!r})" if self.element else ""
        return f"{where}{self.kind.value}: {self.reason}{at}"


class BindingTable(MappingABC):
    """Variable → offset relative to the anchor, in first-bound order.

    Named wildcard captures live in :attr:`captures`, separate from the
    offsets.
    """

    def __init__(
        self,
        offsets: Optional[Mapping[str, int]] = None,
        captures: Optional[Mapping[str, Code]] = None,
    ) -> None:
        self._offsets: Dict[str, int] = dict(offsets or {})
        self.captures: Dict[str, Code] = dict(captures or {})

    def __getitem__(self, name: str) -> int:
        return self._offsets[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._offsets)

    def __len__(self) -> int:
        return len(self._offsets)

    @property
    def anchor(self) -> Optional[str]:
        """The first-bound variable, the one sitting at offset 0."""
        return next(iter(self._offsets), None)

    def relative(self, src: str, dst: str) -> int:
        """Distance from *src*'s cell to *dst*'s cell."""
        return self._offsets[dst] - self._offsets[src]

    def __repr__(self) -> str:
        captures = {name: render(span) for name, span in self.captures.items()}
        return f"BindingTable({self._offsets!r}, captures={captures!r})"


@dataclass(frozen=True)
class MatchResult:
    """Outcome of a single match attempt."""
    matched: bool
    bindings: BindingTable = field(default_factory=BindingTable)
    failure: Optional[MatchFailure] = None
    matched_code: Code = ()
    position: Optional[Position] = None
    steps: int = 0

    def __bool__(self) -> bool:
        return self.matched

    @property
    def budget_exceeded(self) -> bool:
        return self.failure is not None and self.failure.kind is FailureKind.BUDGET_EXCEEDED

    @property
    def captures(self) -> Mapping[str, Code]:
        return self.bindings.captures

    @property
    def text(self) -> str:
        return render(self.matched_code)


# ===================================================================== #
#  Search state                                                          #
# ===================================================================== #

@dataclass(frozen=True)
class _State:
    head: int = 0
    anchor: Optional[int] = None
    last_cell: Optional[int] = None
    offsets: Mapping[str, int] = field(default_factory=dict)
    captures: Mapping[str, Code] = field(default_factory=dict)
    consumed: int = 0

    def advance(self, n: int = 1, step: int = 0) -> "_State":
        return replace(self, head=self.head + step, consumed=self.consumed + n)


Candidates = Iterator[Tuple[int, _State]]


def _where(code: Code, i: int) -> Optional[Position]:
    if i < len(code):
        return code[i].position
    return code[-1].position if code else None


def _describe(code: Code, i: int) -> str:
    if i >= len(code):
        return "end of code"
    node = code[i]
    if isinstance(node, Loop):
        return "a loop"
    return repr(node.command.value)


class _Search:
    """State for one match invocation; never shared."""

    def __init__(self, config: MatcherConfig, check_origin: bool) -> None:
        self.config = config
        self.check_origin = check_origin and not config.allow_negative_cells
        self.steps = 0
        self.best: Optional[MatchFailure] = None

    # ── bookkeeping ──────────────────────────────────────────────

    def tick(self) -> None:
        self.steps += 1
        if self.steps > self.config.max_steps:
            raise MatchBudgetExceeded(self.config.max_steps)

    def fail(
        self,
        kind: FailureKind,
        reason: str,
        position: Optional[Position],
        element: Optional[A.Element],
        consumed: int,
    ) -> None:
        if self.best is None or consumed > self.best.consumed:
            self.best = MatchFailure(
                kind, reason, position, str(element) if element is not None else None, consumed
            )

    # ── sequences ────────────────────────────────────────────────

    def sequence(self, elements: A.Sequence, code: Code, i: int, st: _State) -> Candidates:
        """Every way *elements* can match a prefix of ``code[i:]``."""
        if not elements:
            yield i, st
            return
        stack = [self.element(elements[0], code, i, st)]
        while stack:
            try:
                j, nxt = next(stack[-1])
            except StopIteration:
                stack.pop()
                continue
            if len(stack) == len(elements):
                yield j, nxt
            else:
                stack.append(self.element(elements[len(stack)], code, j, nxt))

    def element(self, el: A.Element, code: Code, i: int, st: _State) -> Candidates:
        self.tick()
        if isinstance(el, A.VarRef):
            return self.var_ref(el, code, i, st)
        if isinstance(el, (A.Op, A.Move)):
            return self.literal(el, code, i, st)
        if isinstance(el, A.PatLoop):
            return self.loop(el, code, i, st)
        if isinstance(el, A.Alt):
            return self.alt(el, code, i, st)
        if isinstance(el, A.Wildcard):
            return self.wildcard(el, code, i, st)
        if isinstance(el, A.PatternCall):
            raise TypeError(f"unexpanded pattern call {el}; expand the pattern first")
        raise TypeError(f"unknown pattern element: {el!r}")

    # ── elements ─────────────────────────────────────────────────

    def var_ref(self, el: A.VarRef, code: Code, i: int, st: _State) -> Candidates:
        run_end = i
        while run_end < len(code) and code[run_end].is_move:
            run_end += 1
        # Longest run first; shorter runs leave moves for literal '<' / '>'.
        for end in range(run_end, i - 1, -1):
            if end != run_end:
                self.tick()
            cell = st.head + displacement(code[i:end])
            moved = st.advance(end - i, cell - st.head)
            bound = self.bind(el, cell, moved, code, end)
            if bound is not None:
                yield end, bound

    def bind(self, el: A.VarRef, cell: int, st: _State, code: Code, i: int) -> Optional[_State]:
        if self.check_origin and cell < 0:
            self.fail(
                FailureKind.OFFSET_MISMATCH,
                f"{el.name} would sit at cell {cell}, left of the tape origin",
                _where(code, i), el, st.consumed,
            )
            return None
        # Before any variable the reference cell is where the match started.
        previous = 0 if st.last_cell is None else st.last_cell
        if el.strict and cell == previous:
            self.fail(
                FailureKind.OFFSET_MISMATCH,
                f"strict {el.name} does not move away from cell {previous}",
                _where(code, i), el, st.consumed,
            )
            return None

        anchor = cell if st.anchor is None else st.anchor
        offset = cell - anchor
        if el.name in st.offsets:
            expected = st.offsets[el.name]
            if expected != offset:
                self.fail(
                    FailureKind.OFFSET_MISMATCH,
                    f"{el.name} is bound to offset {expected}, head is at offset {offset}",
                    _where(code, i), el, st.consumed,
                )
                return None
            return replace(st, last_cell=cell)

        offsets = dict(st.offsets)
        offsets[el.name] = offset
        return replace(st, anchor=anchor, last_cell=cell, offsets=offsets)

    def literal(self, el: Union[A.Op, A.Move], code: Code, i: int, st: _State) -> Candidates:
        node = code[i] if i < len(code) else None
        if isinstance(node, Instruction) and node.command is el.command:
            yield i + 1, st.advance(1, node.command.step)
            return
        self.fail(
            FailureKind.OP_MISMATCH,
            f"expected {el.command.value!r}, found {_describe(code, i)}",
            _where(code, i), el, st.consumed,
        )

    def loop(self, el: A.PatLoop, code: Code, i: int, st: _State) -> Candidates:
        node = code[i] if i < len(code) else None
        if not isinstance(node, Loop):
            self.fail(
                FailureKind.STRUCTURAL_MISMATCH,
                f"expected a loop, found {_describe(code, i)}",
                _where(code, i), el, st.consumed,
            )
            return
        inner = node.body
        for j, nxt in self.sequence(el.body, inner, 0, st.advance(1)):
            if j == len(inner):
                # Loops are taken to leave the head where they found it.
                yield i + 1, replace(nxt.advance(1), head=st.head)
            else:
                self.fail(
                    FailureKind.STRUCTURAL_MISMATCH,
                    f"loop body has {len(inner) - j} unmatched instruction(s) left",
                    _where(inner, j), el, nxt.consumed,
                )

    def alt(self, el: A.Alt, code: Code, i: int, st: _State) -> Candidates:
        for variant in el.variants:
            yield from self.sequence(variant, code, i, st)

    def wildcard(self, el: A.Wildcard, code: Code, i: int, st: _State) -> Candidates:
        previous = st.captures.get(el.capture) if el.capture is not None else None
        if previous is not None:
            end = i + len(previous)
            span = tuple(code[i:end])
            # Rendered text compares nested loops without recursing.
            if render(span) == render(previous):
                yield end, st.advance(count_instructions(span), displacement(span))
            else:
                self.fail(
                    FailureKind.STRUCTURAL_MISMATCH,
                    f"capture {el.capture} does not repeat {render(previous)!r}",
                    _where(code, i), el, st.consumed,
                )
            return

        # Shortest span first.
        for end in range(i, len(code) + 1):
            if end != i:
                self.tick()
            span = tuple(code[i:end])
            nxt = st.advance(count_instructions(span), displacement(span))
            if el.capture is not None:
                captures = dict(nxt.captures)
                captures[el.capture] = span
                nxt = replace(nxt, captures=captures)
            yield end, nxt


# ===================================================================== #
#  Matcher façade                                                        #
# ===================================================================== #

PatternInput = Union[str, A.PatternModule, A.Sequence]
CodeInput = Union[str, Code]


class Matcher:
    """Matches patterns against concrete code under one configuration.

    A ``Matcher`` holds no per-match state and may be shared between
    threads; every call builds its own search.

    Usage::

        matcher = Matcher(MatcherConfig(max_steps=10_000))
        result = matcher.match("x[-y+x]", ">>>[-<<<+>>>]")
        if result:
            print(dict(result.bindings))   # {'x': 0, 'y': -3}
        else:
            print(result.failure)
    """

    def __init__(self, config: Optional[MatcherConfig] = None) -> None:
        self.config = config or DEFAULT_CONFIG
        for warning in self.config.validate():
            logger.warning("matcher config: %s", warning)

    # ── input normalisation ──────────────────────────────────────

    def prepare(self, pattern: PatternInput) -> A.Sequence:
        """Parse (if needed) and expand *pattern* into call-free elements."""
        if isinstance(pattern, str):
            pattern = parse_pattern(pattern, permissive=self.config.permissive_patterns)
        if isinstance(pattern, A.PatternModule):
            return expand(pattern.main, pattern.definitions, max_depth=self.config.max_expansion_depth)
        return expand(tuple(pattern), {}, max_depth=self.config.max_expansion_depth)

    @staticmethod
    def _code(code: CodeInput) -> Code:
        if isinstance(code, str):
            return parse_code(code)
        return tuple(code)

    # ── operations ───────────────────────────────────────────────

    def match(self, pattern: PatternInput, code: CodeInput) -> MatchResult:
        """Match *pattern* against the whole of *code*."""
        elements = self.prepare(pattern)
        nodes = self._code(code)
        search = _Search(self.config, check_origin=True)
        logger.debug("matching %d element(s) against %d node(s)", len(elements), len(nodes))

        try:
            for end, st in search.sequence(elements, nodes, 0, _State()):
                if end == len(nodes):
                    logger.debug("matched after %d step(s)", search.steps)
                    return MatchResult(
                        matched=True,
                        bindings=BindingTable(st.offsets, st.captures),
                        matched_code=nodes,
                        position=_where(nodes, 0),
                        steps=search.steps,
                    )
                search.fail(
                    FailureKind.STRUCTURAL_MISMATCH,
                    f"{len(nodes) - end} trailing instruction(s) left unmatched",
                    _where(nodes, end), None, st.consumed,
                )
        except MatchBudgetExceeded as exc:
            logger.info("match gave up: %s", exc.message)
            return MatchResult(
                matched=False,
                failure=MatchFailure(FailureKind.BUDGET_EXCEEDED, exc.message),
                steps=search.steps,
            )

        failure = search.best or MatchFailure(
            FailureKind.STRUCTURAL_MISMATCH, "pattern does not match", _where(nodes, 0)
        )
        logger.debug("no match after %d step(s): %s", search.steps, failure)
        return MatchResult(matched=False, failure=failure, steps=search.steps)

    def find_all(self, pattern: PatternInput, code: CodeInput) -> List[MatchResult]:
        """Every non-overlapping, non-empty match, in source order.

        Matches are tried at each instruction from left to right; after a
        match the scan resumes behind it, otherwise one instruction further.
        Loops that are not part of a match are scanned inside as well.  The
        head is unknown mid-program, so the tape-origin check is off.

        Raises
        ------
        MatchBudgetExceeded
            One of the attempts ran out of steps.
        """
        elements = self.prepare(pattern)
        results: List[MatchResult] = []
        self._scan(elements, self._code(code), results)
        logger.debug("found %d match(es)", len(results))
        return results

    def _scan(self, elements: A.Sequence, code: Code, out: List[MatchResult]) -> None:
        # One (nodes, index) frame per loop being scanned; innermost last.
        frames: List[Tuple[Code, int]] = [(code, 0)]
        while frames:
            nodes, i = frames.pop()
            while i < len(nodes):
                found = self._match_at(elements, nodes, i)
                if found is not None:
                    out.append(found)
                    i += len(found.matched_code)
                    continue
                node = nodes[i]
                i += 1
                if isinstance(node, Loop):
                    frames.append((nodes, i))
                    frames.append((node.body, 0))
                    break

    def _match_at(self, elements: A.Sequence, code: Code, start: int) -> Optional[MatchResult]:
        search = _Search(self.config, check_origin=False)
        for end, st in search.sequence(elements, code, start, _State()):
            if end > start:
                return MatchResult(
                    matched=True,
                    bindings=BindingTable(st.offsets, st.captures),
                    matched_code=tuple(code[start:end]),
                    position=code[start].position,
                    steps=search.steps,
                )
        return None


def match(pattern: PatternInput, code: CodeInput, config: Optional[MatcherConfig] = None) -> MatchResult:
    """Match *pattern* against the whole of *code* (see :class:`Matcher`)."""
    return Matcher(config).match(pattern, code)


def find_all(
    pattern: PatternInput, code: CodeInput, config: Optional[MatcherConfig] = None
) -> List[MatchResult]:
    """Scan *code* for every occurrence of *pattern* (see :meth:`Matcher.find_all`)."""
    return Matcher(config).find_all(pattern, code)
