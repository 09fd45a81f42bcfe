"""bfpatterns/sexp.py – S-expression dump of pattern trees.

A debugging aid for the front end: shows exactly what the parser (and,
for ``dump``, the expander) produced.

    >>> to_sexp(parse_pattern("x[-y+x]"))
    '(pattern (var x) (loop (op dec) (var y) (op inc) (var x)))'
"""

from __future__ import annotations

from typing import Any, List, Union

import sexpdata
from sexpdata import Symbol

from bfpatterns import ast_nodes as A
from bfpatterns.visitor import PatternVisitor

__all__ = ["to_sexp", "SexpBuilder"]


class SexpBuilder(PatternVisitor):
    """Turns pattern nodes into nested lists of :class:`sexpdata.Symbol`."""

    def visit_sequence(self, elements) -> List[Any]:
        return [self.visit(el) for el in elements]

    def visit_var_ref(self, node: A.VarRef) -> List[Any]:
        return [Symbol("strict-var" if node.strict else "var"), Symbol(node.name)]

    def visit_op(self, node: A.Op) -> List[Any]:
        return [Symbol("op"), Symbol(node.command.label)]

    def visit_move(self, node: A.Move) -> List[Any]:
        return [Symbol("move"), Symbol(node.command.label)]

    def visit_pat_loop(self, node: A.PatLoop) -> List[Any]:
        return [Symbol("loop")] + self.visit_sequence(node.body)

    def visit_alt(self, node: A.Alt) -> List[Any]:
        return [Symbol("alt")] + [
            [Symbol("seq")] + self.visit_sequence(variant) for variant in node.variants
        ]

    def visit_wildcard(self, node: A.Wildcard) -> List[Any]:
        if node.capture is None:
            return [Symbol("wildcard")]
        return [Symbol("wildcard"), Symbol(node.capture)]

    def visit_pattern_call(self, node: A.PatternCall) -> List[Any]:
        return [Symbol("call"), Symbol(node.name)] + [Symbol(a) for a in node.args]

    def visit_pattern_def(self, node: A.PatternDef) -> List[Any]:
        header = [Symbol(node.name)] + [Symbol(p) for p in node.params]
        return [Symbol("define"), header] + self.visit_sequence(node.body)

    def visit_pattern_module(self, node: A.PatternModule) -> List[Any]:
        main = [Symbol("pattern")] + self.visit_sequence(node.main)
        if not node.definitions:
            return main
        defines = [self.visit(d) for d in node.definitions.values()]
        return [Symbol("module")] + defines + [main]


def to_sexp(tree: Union[A.PatternModule, A.PatternNode, A.Sequence]) -> str:
    """Render a module, a single node or a sequence as an S-expression.

    A module without definitions and a bare sequence both render as
    ``(pattern ...)``.
    """
    builder = SexpBuilder()
    if isinstance(tree, A.PatternNode):
        data = builder.visit(tree)
    else:
        data = [Symbol("pattern")] + builder.visit_sequence(tree)
    return sexpdata.dumps(data)
