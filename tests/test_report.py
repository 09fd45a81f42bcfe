# tests/test_report.py
"""
Tests for binding reports: pairs, pairwise offsets, text and JSON output.
"""

import json

from bfpatterns.matcher import match
from bfpatterns.report import (
    binding_pairs, capture_texts, relative_offsets,
    render_failure, render_report, report_to_dict,
)
from tests.conftest import COPY_CODE, COPY_PATTERN, MISALIGNED_CODE


class TestBindingPairs:

    def test_first_bound_order(self):
        result = match(COPY_PATTERN, COPY_CODE)
        assert binding_pairs(result) == [("x", 0), ("y", -3)]

    def test_captures_as_text(self):
        result = match("x [- {body}]", ">[-<+>]")
        assert capture_texts(result) == [("body", "<+>")]

    def test_relative_offsets(self):
        result = match(COPY_PATTERN, COPY_CODE)
        assert relative_offsets(result) == {"x": {"y": -3}, "y": {"x": 3}}

    def test_single_variable_has_no_pairs(self):
        result = match("x[-]", ">[-]")
        assert relative_offsets(result) == {"x": {}}


class TestTextReport:

    def test_success(self):
        report = render_report(match(COPY_PATTERN, COPY_CODE))
        lines = report.splitlines()
        assert lines[0] == "result: `>>>[-<<<+>>>]` at 1:1"
        assert "  x = 0" in lines
        assert "  y = -3" in lines
        assert "offsets for `x`" in lines
        assert "    `y` -> -3" in lines

    def test_without_pairs(self):
        report = render_report(match(COPY_PATTERN, COPY_CODE), pairwise=False)
        assert "offsets for" not in report

    def test_captures_listed(self):
        report = render_report(match("x [- {body}]", ">[-<+>]"))
        assert "  {body} = `<+>`" in report.splitlines()

    def test_failure(self):
        report = render_report(match(COPY_PATTERN, MISALIGNED_CODE))
        assert report.startswith("no match: ")
        assert "OffsetMismatch" in report

    def test_render_failure_none(self):
        assert render_failure(None) == "no match"


class TestJsonReport:

    def test_success_serialisable(self):
        data = report_to_dict(match(COPY_PATTERN, COPY_CODE))
        decoded = json.loads(json.dumps(data))
        assert decoded["matched"] is True
        assert decoded["bindings"] == {"x": 0, "y": -3}
        assert decoded["anchor"] == "x"
        assert decoded["relative_offsets"]["y"] == {"x": 3}
        assert decoded["text"] == COPY_CODE

    def test_failure(self):
        data = report_to_dict(match(COPY_PATTERN, MISALIGNED_CODE))
        assert data["matched"] is False
        assert data["failure"]["kind"] == "OffsetMismatch"
        assert data["failure"]["element"] == "y"
        json.dumps(data)
