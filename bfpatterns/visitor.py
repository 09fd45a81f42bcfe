#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
bfpatterns/visitor.py
=====================

Visitor pattern infrastructure for pattern tree traversal.

Provides:
- ``PatternVisitor`` — abstract base with default implementations
- ``DepthFirstVisitor`` — generic traversal that visits all children
- ``TransformingVisitor`` — visitor that rebuilds the tree (for rewrites)
- ``iter_nodes`` / ``variables`` / ``calls`` — small queries built on them
"""

from __future__ import annotations

import abc
from dataclasses import replace
from typing import Any, Iterable, Iterator, List, Tuple

from bfpatterns import ast_nodes as A

__all__ = [
    "PatternVisitor",
    "DepthFirstVisitor",
    "TransformingVisitor",
    "iter_nodes",
    "variables",
    "calls",
]


class PatternVisitor(abc.ABC):
    """Abstract base class for pattern tree visitors.

    Each ``visit_X`` method corresponds to a node type.  The default
    implementations call ``generic_visit``, which does nothing.  Subclasses
    override the methods they care about.
    """

    def visit(self, node: A.PatternNode) -> Any:
        """Dispatch to the appropriate visit method."""
        return node.accept(self)

    def visit_sequence(self, elements: Iterable[A.PatternNode]) -> Any:
        return [self.visit(el) for el in elements]

    def generic_visit(self, node: A.PatternNode) -> Any:
        """Called when no specific visitor method exists."""
        return None

    # --- Elements ---

    def visit_var_ref(self, node: A.VarRef) -> Any:
        return self.generic_visit(node)

    def visit_op(self, node: A.Op) -> Any:
        return self.generic_visit(node)

    def visit_move(self, node: A.Move) -> Any:
        return self.generic_visit(node)

    def visit_pat_loop(self, node: A.PatLoop) -> Any:
        return self.generic_visit(node)

    def visit_alt(self, node: A.Alt) -> Any:
        return self.generic_visit(node)

    def visit_wildcard(self, node: A.Wildcard) -> Any:
        return self.generic_visit(node)

    def visit_pattern_call(self, node: A.PatternCall) -> Any:
        return self.generic_visit(node)

    # --- Containers ---

    def visit_pattern_def(self, node: A.PatternDef) -> Any:
        return self.generic_visit(node)

    def visit_pattern_module(self, node: A.PatternModule) -> Any:
        return self.generic_visit(node)


class DepthFirstVisitor(PatternVisitor):
    """Visits every node, children after their parent."""

    def visit_pat_loop(self, node: A.PatLoop) -> Any:
        self.generic_visit(node)
        self.visit_sequence(node.body)

    def visit_alt(self, node: A.Alt) -> Any:
        self.generic_visit(node)
        for variant in node.variants:
            self.visit_sequence(variant)


class TransformingVisitor(PatternVisitor):
    """Rebuilds the tree bottom-up.

    A ``visit_*`` method may return a single element or a tuple of
    elements; tuples are spliced into the enclosing sequence.
    """

    def generic_visit(self, node: A.PatternNode) -> Any:
        return node

    def visit_sequence(self, elements: Iterable[A.PatternNode]) -> Tuple[A.PatternNode, ...]:
        out: List[A.PatternNode] = []
        for el in elements:
            result = self.visit(el)
            if isinstance(result, tuple):
                out.extend(result)
            else:
                out.append(result)
        return tuple(out)

    def visit_pat_loop(self, node: A.PatLoop) -> Any:
        return replace(node, body=self.visit_sequence(node.body))

    def visit_alt(self, node: A.Alt) -> Any:
        return replace(node, variants=tuple(self.visit_sequence(v) for v in node.variants))


# ─────────────────────────────────────────────────────────────────
# Queries
# ─────────────────────────────────────────────────────────────────

class _Collector(DepthFirstVisitor):
    def __init__(self) -> None:
        self.nodes: List[A.PatternNode] = []

    def generic_visit(self, node: A.PatternNode) -> Any:
        self.nodes.append(node)


def iter_nodes(elements: Iterable[A.PatternNode]) -> Iterator[A.PatternNode]:
    """Yield every node of a sequence in depth-first order."""
    collector = _Collector()
    collector.visit_sequence(elements)
    return iter(collector.nodes)


def variables(elements: Iterable[A.PatternNode]) -> List[str]:
    """Variable names in order of first appearance."""
    seen: dict = {}
    for node in iter_nodes(elements):
        if isinstance(node, A.VarRef):
            seen.setdefault(node.name, None)
    return list(seen)


def calls(elements: Iterable[A.PatternNode]) -> List[A.PatternCall]:
    return [n for n in iter_nodes(elements) if isinstance(n, A.PatternCall)]
