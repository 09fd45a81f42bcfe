"""bfpatterns — structural pattern matching for brainfuck code.

Patterns describe code shape without committing to distances: a variable
stands for "whatever run of ``<``/``>`` gets the head to this cell", and a
successful match reports every variable's offset relative to the first
one bound.

Submodules
----------
commands
    The instruction vocabulary: ``Command``, ``Instruction``, ``Loop``.

source
    Brainfuck text → immutable instruction forest (``parse_code``).

errors
    Exception hierarchy with structured ``BFP-NNNN`` codes and
    ``Position`` source locations.

ast_nodes / grammar / parser
    The pattern DSL: node types, the parsimonious PEG grammar and the
    text → ``PatternModule`` front end (``parse_pattern``).

visitor / expander
    Tree traversal helpers and named-pattern inlining (``expand``).

matcher
    The backtracking engine: ``match``, ``find_all``, ``Matcher``,
    ``MatchResult``.

report / sexp
    Text and JSON reports of bindings; S-expression dumps of patterns.

main
    CLI entry-point with subcommands ``match``, ``find``, ``check``,
    ``dump``.

Usage
-----
Command-line::

    python -m bfpatterns match -p 'x[-y+x]' -c '>>>[-<<<+>>>]'
    python -m bfpatterns --help

Programmatic::

    from bfpatterns import match

    result = match("x[-y+x]", ">>>[-<<<+>>>]")
    dict(result.bindings)        # {'x': 0, 'y': -3}

"""

from __future__ import annotations

__version__: str = "0.1.0"

from bfpatterns.config import MatcherConfig  # noqa: E402
from bfpatterns.errors import BfPatternError  # noqa: E402
from bfpatterns.matcher import FailureKind, Matcher, MatchResult, find_all, match  # noqa: E402
from bfpatterns.parser import parse_pattern  # noqa: E402
from bfpatterns.source import parse_code  # noqa: E402

__all__: list[str] = [
    "__version__",
    "MatcherConfig",
    "BfPatternError",
    "FailureKind",
    "Matcher",
    "MatchResult",
    "match",
    "find_all",
    "parse_pattern",
    "parse_code",
]
