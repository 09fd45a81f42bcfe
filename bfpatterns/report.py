"""bfpatterns/report.py – present match results to humans and machines.

Text output::

    result: `>>>[-<<<+>>>]`
      x = 0
      y = -3
    offsets for `x`
        `y` -> -3
    offsets for `y`
        `x` -> 3

JSON output is :func:`report_to_dict` passed through :func:`json.dumps`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from bfpatterns.commands import render
from bfpatterns.matcher import MatchFailure, MatchResult

__all__ = [
    "binding_pairs",
    "capture_texts",
    "relative_offsets",
    "render_report",
    "render_failure",
    "report_to_dict",
]


def binding_pairs(result: MatchResult) -> List[Tuple[str, int]]:
    """``(name, offset)`` pairs in first-bound order."""
    return list(result.bindings.items())


def capture_texts(result: MatchResult) -> List[Tuple[str, str]]:
    """``(name, instruction text)`` for every named wildcard capture."""
    return [(name, render(span)) for name, span in result.captures.items()]


def relative_offsets(result: MatchResult) -> Dict[str, Dict[str, int]]:
    """For every variable, the distance to each other variable's cell.

    ``relative_offsets(r)[a][b]`` is how far the head moves to get from
    ``a``'s cell to ``b``'s.
    """
    table: Dict[str, Dict[str, int]] = {}
    for src, src_offset in result.bindings.items():
        table[src] = {
            dst: dst_offset - src_offset
            for dst, dst_offset in result.bindings.items()
            if dst != src
        }
    return table


def render_failure(failure: Optional[MatchFailure]) -> str:
    if failure is None:
        return "no match"
    return f"no match: {failure}"


def render_report(result: MatchResult, *, pairwise: bool = True) -> str:
    """Human-readable report of one result (success or failure)."""
    if not result.matched:
        return render_failure(result.failure)

    lines = []
    where = f" at {result.position}" if result.position is not None else ""
    lines.append(f"result: `{result.text}`{where}")
    for name, offset in binding_pairs(result):
        lines.append(f"  {name} = {offset}")
    for name, text in capture_texts(result):
        lines.append(f"  {{{name}}} = `{text}`")
    if pairwise:
        for name, others in relative_offsets(result).items():
            if not others:
                continue
            lines.append(f"offsets for `{name}`")
            for other, delta in others.items():
                lines.append(f"    `{other}` -> {delta}")
    return "\n".join(lines)


def report_to_dict(result: MatchResult) -> Dict[str, Any]:
    """JSON-serialisable form of one result."""
    data: Dict[str, Any] = {"matched": result.matched, "steps": result.steps}
    if result.matched:
        data["text"] = result.text
        if result.position is not None:
            data["line"] = result.position.line
            data["column"] = result.position.column
        data["bindings"] = dict(result.bindings)
        data["anchor"] = result.bindings.anchor
        data["captures"] = dict(capture_texts(result))
        data["relative_offsets"] = relative_offsets(result)
    elif result.failure is not None:
        failure = result.failure
        data["failure"] = {
            "kind": failure.kind.value,
            "reason": failure.reason,
            "consumed": failure.consumed,
        }
        if failure.element is not None:
            data["failure"]["element"] = failure.element
        if failure.position is not None:
            data["failure"]["line"] = failure.position.line
            data["failure"]["column"] = failure.position.column
    return data
