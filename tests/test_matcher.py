# tests/test_matcher.py
"""
Tests for the matching engine: bindings, backtracking, failures, scanning.
"""

import pytest

from bfpatterns.ast_nodes import Alt, Op, VarRef
from bfpatterns.commands import Command, displacement, render
from bfpatterns.config import MatcherConfig
from bfpatterns.errors import MatchBudgetExceeded, UndefinedPattern
from bfpatterns.matcher import FailureKind, Matcher, MatchResult, find_all, match
from bfpatterns.parser import parse_pattern, parse_sequence
from bfpatterns.source import parse_code
from tests.conftest import (
    CLEAR_TWICE_CODE, COPY_CODE, COPY_LIBRARY, COPY_PATTERN, DEEP_CODE, DEEP_DEPTH,
    MISALIGNED_CODE, MOVE_LIBRARY, TEMP_COPY_CODE,
)


class TestScenarios:

    def test_copy_loop_binds_offsets(self):
        result = match(COPY_PATTERN, COPY_CODE)
        assert isinstance(result, MatchResult)
        assert result.matched
        assert dict(result.bindings) == {"x": 0, "y": -3}
        assert result.bindings.anchor == "x"

    def test_misaligned_copy_is_offset_mismatch(self):
        result = match(COPY_PATTERN, MISALIGNED_CODE)
        assert not result
        assert result.failure.kind is FailureKind.OFFSET_MISMATCH
        assert not result.budget_exceeded

    def test_accepts_parsed_inputs(self):
        result = match(parse_pattern(COPY_PATTERN), parse_code(COPY_CODE))
        assert dict(result.bindings) == {"x": 0, "y": -3}

    def test_accepts_element_sequence(self):
        result = match(parse_sequence(COPY_PATTERN), COPY_CODE)
        assert result.matched

    def test_binding_order_is_first_bound(self):
        result = match("b a [-b+a]", ">>>>[-<<<+>>>]")
        assert list(result.bindings) == ["b", "a"]

    def test_deep_nesting(self):
        assert match("{}", DEEP_CODE).matched
        result = match("{body}", DEEP_CODE)
        assert render(result.captures["body"]) == DEEP_CODE


class TestProperties:

    @pytest.mark.parametrize("n", [1, 2, 5])
    def test_anchor_invariance_cancelling_prefix(self, n):
        code = ">" * n + "<" * n + COPY_CODE
        assert dict(match(COPY_PATTERN, code).bindings) == {"x": 0, "y": -3}

    @pytest.mark.parametrize("n", [1, 4])
    def test_anchor_invariance_shifted(self, n):
        code = ">" * n + COPY_CODE
        assert dict(match(COPY_PATTERN, code).bindings) == {"x": 0, "y": -3}

    def test_offsets_reproduce_moves(self):
        code = parse_code(">>>>>[-<<+>>]")
        result = match(COPY_PATTERN, code)
        body = code[-1].body
        # body is  - << + >>
        assert result.bindings.relative("x", "y") == displacement(body[1:3])
        assert result.bindings.relative("y", "x") == displacement(body[4:6])

    @pytest.mark.parametrize("code", [">+", ">-", ">."])
    def test_alt_is_disjunction(self, code):
        either = match("x (+ | -)", code).matched
        separately = match("x +", code).matched or match("x -", code).matched
        assert either == separately

    def test_expansion_is_transparent(self):
        inlined = match("p[-q+p]", COPY_CODE)
        called = match("move(a, b): a[-b+a]\nmove(p, q)", COPY_CODE)
        assert dict(called.bindings) == dict(inlined.bindings) == {"p": 0, "q": -3}


class TestElements:

    def test_op_mismatch(self):
        result = match("x[+y-x]", COPY_CODE)
        assert result.failure.kind is FailureKind.OP_MISMATCH
        assert "expected '+'" in result.failure.reason

    def test_loop_expected(self):
        result = match("x[-]", ">>+")
        assert result.failure.kind is FailureKind.STRUCTURAL_MISMATCH

    def test_loop_body_must_be_consumed(self):
        result = match("[-]", "[-+]")
        assert result.failure.kind is FailureKind.STRUCTURAL_MISMATCH

    def test_trailing_code_fails(self):
        result = match("+", "++")
        assert not result
        assert result.failure.kind is FailureKind.STRUCTURAL_MISMATCH

    def test_literal_moves(self):
        assert match("x>+<", ">>>+<").matched
        assert not match("x>+<", ">>>+").matched

    def test_var_leaves_moves_for_literals(self):
        result = match("x > y", ">>>")
        assert dict(result.bindings) == {"x": 0, "y": 1}

    def test_empty_pattern_matches_empty_code(self):
        assert match("", "").matched
        assert not match("", "+").matched

    def test_loops_do_not_move_the_head(self):
        result = match("x[>]y", ">>[>]<")
        assert dict(result.bindings) == {"x": 0, "y": -1}


class TestBacktracking:

    def test_alt_retries_after_later_failure(self):
        assert match("(+ | + +) -", "++-").matched

    def test_alt_prefers_first_variant(self):
        result = match("x (y | z)", ">>")
        assert list(result.bindings) == ["x", "y"]

    def test_alt_rolls_back_bindings(self):
        result = match("x ((y +) | (z -))", ">>-")
        assert dict(result.bindings) == {"x": 0, "z": 0}

    def test_alt_variant_from_parsed_tree(self):
        pattern = (VarRef("x"), Alt(((Op(Command.INCREMENT),), (Op(Command.OUTPUT),))))
        assert match(pattern, ">.").matched


class TestWildcards:

    def test_minimal_span(self):
        result = match("{} x[-]", "+++>>[-]")
        assert dict(result.bindings) == {"x": 0}

    def test_wildcard_skips_loops_whole(self):
        assert match("x {} y", ">[->+<]>").matched

    def test_trailing_wildcard_absorbs_rest(self):
        assert match("x[-] {}", ">[-]+++").matched

    def test_capture_recorded(self):
        result = match("x [- {body}]", ">[-<+>]")
        assert render(result.captures["body"]) == "<+>"
        assert list(result.bindings) == ["x"]

    def test_capture_back_reference(self):
        assert match("{a} > {a}", "+>+").matched
        assert not match("{a} > {a}", "+>-").matched

    def test_capture_back_reference_with_loops(self):
        assert match("{a} > {a}", "[-[+]]>[-[+]]").matched
        assert not match("{a} > {a}", "[-[+]]>[-[-]]").matched

    def test_wildcard_moves_the_head(self):
        # x cannot sit left of the origin, so the wildcard swallows "<<+".
        result = match("x {} y", "<<+>>>")
        assert dict(result.bindings) == {"x": 0, "y": 1}
        permissive = match("x {} y", "<<+>>>", MatcherConfig(allow_negative_cells=True))
        assert dict(permissive.bindings) == {"x": 0, "y": 3}


class TestStrictVariables:

    def test_strict_forces_distinct_cell(self):
        assert dict(match("x y", ">>").bindings) == {"x": 0, "y": 0}
        assert dict(match("x y!", ">>").bindings) == {"x": 0, "y": 1}

    def test_strict_fails_without_movement(self):
        result = match("x y!", "")
        assert result.failure.kind is FailureKind.OFFSET_MISMATCH

    def test_leading_strict_must_leave_start(self):
        result = match("x!", "")
        assert result.failure.kind is FailureKind.OFFSET_MISMATCH
        assert "x" in result.failure.reason
        assert dict(match("x!", ">").bindings) == {"x": 0}


class TestTapeOrigin:

    def test_negative_cell_rejected(self):
        result = match("x", "<")
        assert result.failure.kind is FailureKind.OFFSET_MISMATCH

    def test_negative_cell_allowed(self, negative_cells):
        assert dict(match("x", "<", negative_cells).bindings) == {"x": 0}

    def test_misaligned_copy_with_negative_cells(self, negative_cells):
        result = match(COPY_PATTERN, MISALIGNED_CODE, negative_cells)
        assert dict(result.bindings) == {"x": 0, "y": -3}


class TestNamedPatterns:

    def test_library_pattern(self):
        result = match(MOVE_LIBRARY, COPY_CODE)
        assert dict(result.bindings) == {"a": 0, "b": -3}

    def test_locals_are_bound(self):
        result = match(COPY_LIBRARY, TEMP_COPY_CODE)
        assert dict(result.bindings) == {"a": 0, "b": 1, "copy.1.tmp": 2}

    def test_undefined_call_in_sequence(self):
        from bfpatterns.ast_nodes import PatternCall
        with pytest.raises(UndefinedPattern):
            match((PatternCall("ghost", ("x",)),), "+")


class TestBudget:

    def test_budget_exceeded_is_distinct(self, small_budget):
        result = match("{}{}{}+", "-------", small_budget)
        assert not result.matched
        assert result.budget_exceeded
        assert result.failure.kind is FailureKind.BUDGET_EXCEEDED

    def test_default_budget_finds_no_match(self):
        result = match("{}{}{}+", "-------")
        assert not result.budget_exceeded
        assert result.failure.kind is FailureKind.OP_MISMATCH

    def test_steps_reported(self):
        assert match(COPY_PATTERN, COPY_CODE).steps > 0


class TestFindAll:

    def test_finds_each_occurrence(self):
        results = find_all("x[-]", CLEAR_TWICE_CODE)
        assert [r.text for r in results] == [">[-]", ">>[-]"]
        assert all(dict(r.bindings) == {"x": 0} for r in results)

    def test_positions(self):
        results = find_all("x[-]", CLEAR_TWICE_CODE)
        assert [r.position.column for r in results] == [2, 6]

    def test_descends_into_loops(self):
        results = find_all("[-]", "[>[-]<-]")
        assert [r.text for r in results] == ["[-]"]
        assert results[0].position.column == 3

    def test_no_origin_check_mid_program(self):
        results = find_all(COPY_PATTERN, "+" + MISALIGNED_CODE)
        assert len(results) == 1

    def test_no_matches(self):
        assert find_all("[-]", "+++") == []

    def test_budget_raises(self, small_budget):
        with pytest.raises(MatchBudgetExceeded):
            Matcher(small_budget).find_all("{}{}{}+", "-------")

    def test_deep_nesting(self):
        results = find_all("+", DEEP_CODE)
        assert [r.text for r in results] == ["+"]
        assert results[0].position.column == DEEP_DEPTH + 1

    def test_resumes_after_inner_loop(self):
        results = find_all("+", "[[+]+]+")
        assert [r.position.column for r in results] == [3, 5, 7]


class TestMatcherObject:

    def test_reusable(self):
        matcher = Matcher()
        assert matcher.match(COPY_PATTERN, COPY_CODE).matched
        assert not matcher.match(COPY_PATTERN, MISALIGNED_CODE).matched
        assert matcher.match(COPY_PATTERN, COPY_CODE).matched

    def test_prepare_expands(self):
        matcher = Matcher()
        assert matcher.prepare(MOVE_LIBRARY)[0] == VarRef("a")
