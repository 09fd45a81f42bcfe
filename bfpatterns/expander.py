"""bfpatterns/expander.py – inline named-pattern calls.

Expansion is a structural macro step run once before matching: every
``PatternCall`` is replaced by the called definition's body with the call's
arguments substituted for the formal parameters.  Calls inside the spliced
body are expanded depth-first.

Names in a body that are not parameters are local to one expansion and are
renamed ``<pattern>.<n>.<name>``, so two calls of the same pattern never
share a temporary cell or a capture.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Mapping, Optional, Tuple

from bfpatterns import ast_nodes as A
from bfpatterns.errors import ArityMismatch, RecursionLimitExceeded, UndefinedPattern
from bfpatterns.visitor import TransformingVisitor

logger = logging.getLogger(__name__)

__all__ = ["PatternExpander", "expand", "expand_module"]

DEFAULT_MAX_DEPTH = 32


class _Substitution(TransformingVisitor):
    """Renames variables, capture names and call arguments of one body."""

    def __init__(self, bindings: Mapping[str, str], local_prefix: str) -> None:
        self._bindings = bindings
        self._prefix = local_prefix

    def _rename(self, name: str) -> str:
        if name in self._bindings:
            return self._bindings[name]
        return self._prefix + name

    def visit_var_ref(self, node: A.VarRef) -> A.VarRef:
        return replace(node, name=self._rename(node.name))

    def visit_wildcard(self, node: A.Wildcard) -> A.Wildcard:
        if node.capture is None:
            return node
        return replace(node, capture=self._rename(node.capture))

    def visit_pattern_call(self, node: A.PatternCall) -> A.PatternCall:
        return replace(node, args=tuple(self._rename(a) for a in node.args))


class _CallInliner(TransformingVisitor):
    def __init__(self, expander: "PatternExpander", depth: int) -> None:
        self._expander = expander
        self._depth = depth

    def visit_pattern_call(self, node: A.PatternCall) -> Tuple[A.Element, ...]:
        return self._expander._inline(node, self._depth)


class PatternExpander:
    """Inlines calls against a fixed, read-only set of definitions."""

    def __init__(
        self,
        definitions: Mapping[str, A.PatternDef],
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.definitions = definitions
        self.max_depth = max_depth
        self._expansions = 0

    def expand(self, sequence: A.Sequence) -> A.Sequence:
        """Return *sequence* with every call inlined."""
        return _CallInliner(self, 0).visit_sequence(sequence)

    def _inline(self, call: A.PatternCall, depth: int) -> A.Sequence:
        definition = self.definitions.get(call.name)
        if definition is None:
            raise UndefinedPattern(call.name, call.loc)
        if depth >= self.max_depth:
            raise RecursionLimitExceeded(call.name, self.max_depth, call.loc)
        if len(call.args) != len(definition.params):
            raise ArityMismatch(call.name, len(definition.params), len(call.args), call.loc)

        self._expansions += 1
        bindings: Dict[str, str] = dict(zip(definition.params, call.args))
        prefix = f"{definition.name}.{self._expansions}."
        body = _Substitution(bindings, prefix).visit_sequence(definition.body)
        logger.debug("inlined %s at depth %d", call, depth)
        return _CallInliner(self, depth + 1).visit_sequence(body)


def expand(
    sequence: A.Sequence,
    definitions: Mapping[str, A.PatternDef],
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> A.Sequence:
    """Inline every ``PatternCall`` of *sequence*.

    Raises
    ------
    UndefinedPattern
        A call names an unknown pattern.
    RecursionLimitExceeded
        Calls nest deeper than *max_depth* (e.g. a self-referential definition).
    ArityMismatch
        A call passes the wrong number of arguments.
    """
    return PatternExpander(definitions, max_depth).expand(sequence)


def expand_module(module: A.PatternModule, *, max_depth: Optional[int] = None) -> A.Sequence:
    """Expand the main query of *module* against its own definitions."""
    return expand(
        module.main,
        module.definitions,
        max_depth=DEFAULT_MAX_DEPTH if max_depth is None else max_depth,
    )
