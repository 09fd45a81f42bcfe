# bfpatterns/grammar.py
"""
Parsimonious PEG grammar for the body of a pattern block.

A pattern file is first cut into blocks (definitions and the main query,
see :mod:`bfpatterns.parser`); each block body is then parsed with the
grammar below.  Two variants exist and differ only in what counts as
whitespace:

* strict:      whitespace and ``#`` comments;
* permissive:  additionally any character that means nothing in the
  pattern alphabet, mirroring how brainfuck itself treats stray text.
"""

from __future__ import annotations

from parsimonious.grammar import Grammar

__all__ = ["PATTERN_RULES", "STRICT_GRAMMAR", "PERMISSIVE_GRAMMAR", "grammar_for"]


PATTERN_RULES = r'''
    # ─────────────────────────────────────────────────────────────
    # Sequences & alternation
    # ─────────────────────────────────────────────────────────────

    sequence            = _ alternation
    alternation         = branch (bar branch)*
    bar                 = "|" _
    branch              = element*

    element             = (loop / group / wildcard / call / var / op / move) _

    # ─────────────────────────────────────────────────────────────
    # Structure
    # ─────────────────────────────────────────────────────────────

    loop                = "[" _ alternation "]"
    group               = "(" _ alternation ")"
    wildcard            = "{" _ capture? "}"
    capture             = name _

    # ─────────────────────────────────────────────────────────────
    # Names & calls
    # ─────────────────────────────────────────────────────────────

    call                = name "(" _ args? ")"
    args                = name _ (comma name _)*
    comma               = "," _
    var                 = name strict?
    strict              = "!"
    name                = ~r"[A-Za-z_][A-Za-z0-9_]*"

    # ─────────────────────────────────────────────────────────────
    # Instructions
    # ─────────────────────────────────────────────────────────────

    op                  = ~r"[-+.,]"
    move                = ~r"[<>]"
'''

_STRICT_WS = r'''
    _                   = ~r"(?:\s|#[^\n]*)*"
'''

_PERMISSIVE_WS = r'''
    _                   = ~r"(?:#[^\n]*|[^A-Za-z_\[\](){}|+\-.,<>])*"
'''

STRICT_GRAMMAR = Grammar(PATTERN_RULES + _STRICT_WS)
PERMISSIVE_GRAMMAR = Grammar(PATTERN_RULES + _PERMISSIVE_WS)


def grammar_for(permissive: bool) -> Grammar:
    return PERMISSIVE_GRAMMAR if permissive else STRICT_GRAMMAR
