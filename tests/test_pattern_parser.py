# tests/test_pattern_parser.py
"""
Tests for the pattern grammar and parser: pattern text → PatternModule.
"""

import doctest

import pytest

from bfpatterns.ast_nodes import (
    Alt, Move, Op, PatLoop, PatternCall, PatternModule, VarRef, Wildcard,
    render_sequence,
)
from bfpatterns.commands import Command
from bfpatterns.errors import (
    ErrorCodes, PatternSyntaxError, UnbalancedLoop, UndefinedPattern,
)
from bfpatterns.grammar import STRICT_GRAMMAR, grammar_for
from bfpatterns import parser
from bfpatterns.parser import parse_pattern, parse_pattern_file, parse_sequence
from tests.conftest import COPY_PATTERN, MOVE_LIBRARY, UNBALANCED_PATTERN

INC = Op(Command.INCREMENT)
DEC = Op(Command.DECREMENT)


class TestGrammar:

    def test_accepts_copy_pattern(self):
        tree = STRICT_GRAMMAR.parse(COPY_PATTERN)
        assert tree.text == COPY_PATTERN

    def test_permissive_grammar_is_distinct(self):
        assert grammar_for(True) is not grammar_for(False)

    def test_call_requires_adjacent_paren(self):
        assert parse_sequence("f(a)") == (PatternCall("f", ("a",)),)
        assert parse_sequence("f (a)") == (VarRef("f"), VarRef("a"))


class TestParseElements:

    def test_empty(self):
        module = parse_pattern("")
        assert isinstance(module, PatternModule)
        assert module.main == ()
        assert dict(module.definitions) == {}

    def test_copy_pattern(self):
        module = parse_pattern(COPY_PATTERN)
        assert module.main == (
            VarRef("x"),
            PatLoop((DEC, VarRef("y"), INC, VarRef("x"))),
        )

    def test_strict_variable(self):
        assert parse_sequence("x y!") == (VarRef("x"), VarRef("y", strict=True))

    def test_literal_moves(self):
        assert parse_sequence("x>+<") == (
            VarRef("x"), Move(Command.MOVE_RIGHT), INC, Move(Command.MOVE_LEFT),
        )

    def test_io_ops(self):
        assert parse_sequence(".,") == (Op(Command.OUTPUT), Op(Command.INPUT))

    def test_wildcards(self):
        assert parse_sequence("{} { body }") == (Wildcard(), Wildcard("body"))

    def test_comments_and_whitespace(self):
        assert parse_sequence("x  # the source cell\n [ - ]") == (
            VarRef("x"), PatLoop((DEC,)),
        )

    def test_names_with_digits(self):
        assert parse_sequence("cell_1") == (VarRef("cell_1"),)


class TestParseAlternation:

    def test_top_level(self):
        assert parse_sequence("+ | -") == (Alt(((INC,), (DEC,))),)

    def test_inside_loop(self):
        (loop,) = parse_sequence("[+|-]")
        assert loop == PatLoop((Alt(((INC,), (DEC,))),))

    def test_group_splices_into_sequence(self):
        assert parse_sequence("x (+ | - -) x") == (
            VarRef("x"), Alt(((INC,), (DEC, DEC))), VarRef("x"),
        )

    def test_plain_group(self):
        assert parse_sequence("(+ -)") == (INC, DEC)

    def test_empty_branch(self):
        assert parse_sequence("(+|)") == (Alt(((INC,), ())),)


class TestParseDefinitions:

    def test_library(self):
        module = parse_pattern(MOVE_LIBRARY)
        assert list(module.definitions) == ["move", "clear"]
        move = module.definitions["move"]
        assert move.params == ("src", "dst")
        assert move.body == (
            VarRef("src"),
            PatLoop((DEC, VarRef("dst"), INC, VarRef("src"))),
        )
        assert module.definitions["clear"].body == (VarRef("c"), PatLoop((DEC,)))
        assert module.main == (PatternCall("move", ("a", "b")),)

    def test_usage_example(self):
        module = parse_pattern("move(a, b): a[-b+a]\nmove(x, y)")
        assert module.definitions["move"].params == ("a", "b")
        assert module.main == (PatternCall("move", ("x", "y")),)

    def test_docstrings_hold_no_failing_examples(self):
        assert doctest.testmod(parser).failed == 0

    def test_multi_line_body(self):
        module = parse_pattern("twice(a):\n    a+\n    a+\na")
        assert module.definitions["twice"].body == (VarRef("a"), INC, VarRef("a"), INC)
        assert module.main == (VarRef("a"),)

    def test_parameterless_definition(self):
        module = parse_pattern("bump: +\nbump()")
        assert module.definitions["bump"].params == ()
        assert module.main == (PatternCall("bump"),)

    def test_definitions_are_read_only(self):
        module = parse_pattern(MOVE_LIBRARY)
        with pytest.raises(TypeError):
            module.definitions["other"] = module.definitions["move"]

    def test_definition_positions(self):
        module = parse_pattern(MOVE_LIBRARY, filename="lib.bfp")
        assert module.definitions["move"].loc.line == 2
        assert module.definitions["clear"].loc.line == 4
        assert module.source_path == "lib.bfp"


class TestParseErrors:

    def test_unbalanced_loop(self):
        with pytest.raises(UnbalancedLoop) as exc_info:
            parse_pattern(UNBALANCED_PATTERN)
        assert exc_info.value.unclosed
        assert exc_info.value.position.column == 2

    def test_stray_close(self):
        with pytest.raises(UnbalancedLoop):
            parse_pattern("x]")

    def test_unbalanced_inside_definition(self):
        with pytest.raises(UnbalancedLoop) as exc_info:
            parse_pattern("m(a):\n    a[-\nm(b)")
        assert exc_info.value.position.line == 2

    def test_syntax_error_position(self):
        with pytest.raises(PatternSyntaxError) as exc_info:
            parse_pattern("x ?")
        err = exc_info.value
        assert err.code == ErrorCodes.PATTERN_SYNTAX
        assert err.position.column == 3
        assert "'?'" in err.message
        assert err.hint == ""
        assert "hint" not in err.to_dict()

    def test_unclosed_group(self):
        with pytest.raises(PatternSyntaxError):
            parse_pattern("x (+")

    def test_permissive_ignores_noise(self):
        assert parse_pattern("x ~ [-y+x]", permissive=True).main == parse_pattern(COPY_PATTERN).main
        with pytest.raises(PatternSyntaxError):
            parse_pattern("x ~ [-y+x]")

    def test_undefined_pattern(self):
        with pytest.raises(UndefinedPattern) as exc_info:
            parse_pattern("nope(x)")
        assert exc_info.value.name == "nope"
        assert exc_info.value.code == "BFP-1004"

    def test_undefined_pattern_is_syntax_error(self):
        with pytest.raises(PatternSyntaxError):
            parse_pattern("m(a): other(a)\nm(x)")

    def test_duplicate_definition(self):
        with pytest.raises(PatternSyntaxError) as exc_info:
            parse_pattern("c(a): a[-]\nc(a): a\nc(x)")
        assert exc_info.value.code == ErrorCodes.DUPLICATE_PATTERN
        assert exc_info.value.position.line == 2

    def test_duplicate_parameter(self):
        with pytest.raises(PatternSyntaxError, match="duplicate parameter"):
            parse_pattern("m(a, a): a\nm(x, y)")

    def test_invalid_parameter(self):
        with pytest.raises(PatternSyntaxError, match="invalid parameter"):
            parse_pattern("m(1a): a\nm(x)")


class TestRendering:

    def test_round_trip(self):
        text = "x (+ | -) y! [-{t}>] f(a, b)"
        module = parse_pattern("f(p, q): p q\n" + text)
        rendered = render_sequence(module.main)
        assert parse_pattern("f(p, q): p q\n" + rendered).main == module.main

    def test_adjacent_names_stay_separate(self):
        assert render_sequence((VarRef("x"), VarRef("y"))) == "x y"


class TestParseFile:

    def test_reads_file(self, tmp_path):
        path = tmp_path / "lib.bfp"
        path.write_text(MOVE_LIBRARY, encoding="utf-8")
        module = parse_pattern_file(path)
        assert "move" in module.definitions
        assert module.source_path == str(path)
