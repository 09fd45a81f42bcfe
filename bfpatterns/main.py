#!/usr/bin/env python3
"""bfpatterns/main.py — CLI entry-point for the bfpatterns matcher.

Usage examples
--------------
    # Match a whole program against a pattern file
    python -m bfpatterns match copy.bfp program.bf

    # Inline pattern and code
    python -m bfpatterns match -p 'x[-y+x]' -c '>>>[-<<<+>>>]'

    # Inline text that starts with '-' goes after '--'
    python -m bfpatterns match -p -c -- '-[-]' '-[-]'

    # Report every occurrence of a pattern inside a program
    python -m bfpatterns find -p 'x[-y+x]' program.bf --format json

    # Parse and expand a pattern file without matching anything
    python -m bfpatterns check library.bfp

    # Show the expanded pattern tree as an S-expression
    python -m bfpatterns dump -p 'clear(c): c[-]
    clear(a) clear(b)'

Exit codes
----------
    0   The pattern matched (``find``: at least one occurrence).
    1   No match.
    2   Parse / expansion error or infrastructure failure (bad file, ...).
    3   The match budget was exhausted before a verdict.

``python -m bfpatterns`` goes through ``bfpatterns/__main__.py``, which
simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from bfpatterns import __version__
from bfpatterns import ast_nodes as A
from bfpatterns.commands import Code
from bfpatterns.config import MatcherConfig
from bfpatterns.errors import BfPatternError, MatchBudgetExceeded
from bfpatterns.expander import expand_module
from bfpatterns.matcher import Matcher, MatchResult
from bfpatterns.parser import parse_pattern
from bfpatterns.report import render_report, report_to_dict
from bfpatterns.sexp import to_sexp
from bfpatterns.source import parse_code, parse_code_file

_log = logging.getLogger("bfpatterns")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_NO_MATCH: int = 1
EXIT_INFRA: int = 2
EXIT_BUDGET: int = 3


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``bfpatterns`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("bfpatterns")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        root.addHandler(handler)


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.is_file():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _config_from_args(args: argparse.Namespace) -> MatcherConfig:
    config = MatcherConfig(
        max_steps=args.max_steps if args.max_steps is not None else MatcherConfig.max_steps,
        allow_negative_cells=args.allow_negative_cells,
        permissive_patterns=args.permissive,
    )
    for warning in config.validate():
        _log.error("invalid option: %s", warning)
        raise SystemExit(EXIT_INFRA)
    return config


def _load_pattern(args: argparse.Namespace) -> A.PatternModule:
    if args.pattern_text:
        return parse_pattern(args.pattern, permissive=args.permissive)
    path = _resolve_path(args.pattern, "pattern file")
    text = path.read_text(encoding="utf-8")
    return parse_pattern(text, permissive=args.permissive, filename=str(path))


def _load_code(args: argparse.Namespace) -> Code:
    if args.code_text:
        return parse_code(args.code)
    return parse_code_file(_resolve_path(args.code, "code file"))


def _emit(results: List[MatchResult], fmt: str, stream: TextIO, *, many: bool) -> None:
    """Write *results* to *stream* as text reports or JSON."""
    if fmt == "json":
        payload = [report_to_dict(r) for r in results] if many else report_to_dict(results[0])
        stream.write(json.dumps(payload, indent=2) + "\n")
        return
    for r in results:
        stream.write(render_report(r) + "\n")
    if many:
        stream.write(f"\n--- {len(results)} match(es) ---\n")


# ===========================================================================
# Sub-commands
# ===========================================================================

def cmd_match(args: argparse.Namespace) -> int:
    """Match the pattern against the whole program."""
    config = _config_from_args(args)
    module = _load_pattern(args)
    code = _load_code(args)

    result = Matcher(config).match(module, code)
    _emit([result], args.format, sys.stdout, many=False)

    if result.matched:
        return EXIT_OK
    if result.budget_exceeded:
        return EXIT_BUDGET
    return EXIT_NO_MATCH


def cmd_find(args: argparse.Namespace) -> int:
    """Report every non-overlapping occurrence of the pattern."""
    config = _config_from_args(args)
    module = _load_pattern(args)
    code = _load_code(args)

    try:
        results = Matcher(config).find_all(module, code)
    except MatchBudgetExceeded as exc:
        _log.error("%s", exc)
        return EXIT_BUDGET

    _emit(results, args.format, sys.stdout, many=True)
    return EXIT_OK if results else EXIT_NO_MATCH


def cmd_check(args: argparse.Namespace) -> int:
    """Parse and expand the pattern; report what was found."""
    config = _config_from_args(args)
    module = _load_pattern(args)
    expanded = expand_module(module, max_depth=config.max_expansion_depth)

    if args.format == "json":
        payload = {
            "ok": True,
            "definitions": {
                name: list(d.params) for name, d in module.definitions.items()
            },
            "elements": len(expanded),
        }
        sys.stdout.write(json.dumps(payload, indent=2) + "\n")
    else:
        sys.stdout.write(
            f"ok: {len(module.definitions)} definition(s), "
            f"{len(expanded)} element(s) after expansion\n"
        )
    return EXIT_OK


def cmd_dump(args: argparse.Namespace) -> int:
    """Print the pattern tree as an S-expression."""
    config = _config_from_args(args)
    module = _load_pattern(args)
    if args.raw:
        sys.stdout.write(to_sexp(module) + "\n")
    else:
        expanded = expand_module(module, max_depth=config.max_expansion_depth)
        sys.stdout.write(to_sexp(expanded) + "\n")
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""

    parser = argparse.ArgumentParser(
        prog="bfpatterns",
        description=(
            "Structural pattern matching for brainfuck code.\n\n"
            "Patterns name tape cells with variables instead of spelling out\n"
            "'<' / '>' runs; a match reports where each variable sits."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              bfpatterns match -p 'x[-y+x]' -c '>>>[-<<<+>>>]'
              bfpatterns find  copy.bfp program.bf --format json
              bfpatterns check library.bfp
              bfpatterns dump  -p 'x[-y+x]'

            Inline text starting with '-' must follow '--', e.g.
              bfpatterns match -p -c -- '-[-]' '-[-]'
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # Shared argument groups (reusable) ------------------------------------

    def _add_pattern_args(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "pattern",
            metavar="PATTERN",
            help="Pattern file (or pattern text with -p).",
        )
        p.add_argument(
            "-p", "--pattern-text",
            action="store_true",
            help="Treat PATTERN as inline pattern text (put '--' before text starting with '-').",
        )
        p.add_argument(
            "--permissive",
            action="store_true",
            help="Ignore characters outside the pattern alphabet.",
        )

    def _add_code_args(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "code",
            metavar="CODE",
            help="Brainfuck source file (or code text with -c).",
        )
        p.add_argument(
            "-c", "--code-text",
            action="store_true",
            help="Treat CODE as inline brainfuck text (put '--' before text starting with '-').",
        )

    def _add_matcher_args(p: argparse.ArgumentParser) -> None:
        g = p.add_argument_group("matcher tuning")
        g.add_argument(
            "--max-steps",
            type=int,
            default=None,
            metavar="N",
            help="Search step budget (default: from MatcherConfig).",
        )
        g.add_argument(
            "--allow-negative-cells",
            action="store_true",
            help="Let variables resolve left of the tape origin.",
        )

    def _add_format_arg(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "-f", "--format",
            choices=["text", "json"],
            default="text",
            help="Output format (default: text).",
        )

    # --- match -------------------------------------------------------------
    p_match = subparsers.add_parser(
        "match",
        help="Match a pattern against a whole program.",
    )
    _add_pattern_args(p_match)
    _add_code_args(p_match)
    _add_matcher_args(p_match)
    _add_format_arg(p_match)
    p_match.set_defaults(func=cmd_match)

    # --- find --------------------------------------------------------------
    p_find = subparsers.add_parser(
        "find",
        help="Report every occurrence of a pattern inside a program.",
    )
    _add_pattern_args(p_find)
    _add_code_args(p_find)
    _add_matcher_args(p_find)
    _add_format_arg(p_find)
    p_find.set_defaults(func=cmd_find)

    # --- check -------------------------------------------------------------
    p_check = subparsers.add_parser(
        "check",
        help="Parse and expand a pattern without matching.",
    )
    _add_pattern_args(p_check)
    _add_matcher_args(p_check)
    _add_format_arg(p_check)
    p_check.set_defaults(func=cmd_check)

    # --- dump --------------------------------------------------------------
    p_dump = subparsers.add_parser(
        "dump",
        help="Print the pattern tree as an S-expression.",
    )
    _add_pattern_args(p_dump)
    _add_matcher_args(p_dump)
    p_dump.add_argument(
        "--raw",
        action="store_true",
        help="Dump the parsed module without expanding calls.",
    )
    p_dump.set_defaults(func=cmd_dump)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the bfpatterns CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    # No subcommand given → print help.
    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except BfPatternError as exc:
        if getattr(args, "format", "text") == "json":
            sys.stdout.write(json.dumps({"error": exc.to_dict()}, indent=2) + "\n")
        else:
            sys.stderr.write(f"{exc}\n")
        return EXIT_INFRA
    except OSError as exc:
        _log.error("I/O error: %s", exc)
        return EXIT_INFRA
    except UnicodeDecodeError as exc:
        _log.error("pattern file is not UTF-8: %s", exc)
        return EXIT_INFRA
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130  # Standard UNIX convention for SIGINT
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
