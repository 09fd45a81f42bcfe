# tests/conftest.py
"""
Shared sample patterns and brainfuck sources for the bfpatterns test suite.
"""

import pytest

from bfpatterns.config import MatcherConfig


# ── Concrete code ────────────────────────────────────────────────

# Move the value three cells to the left and come back.
COPY_CODE = ">>>[-<<<+>>>]"

# Same loop body, but the loop is entered two cells right of the origin:
# the body would touch a cell left of the tape origin.
MISALIGNED_CODE = ">>[-<<<+>>>]"

CLEAR_TWICE_CODE = "+>[-]>>[-]"

COMMENTED_CODE = """\
this program moves a value
>>> go to the source cell
[ - <<< + >>> ]  transfer it
"""

# Non-destructive copy of cell 1 into cell 2 through a temporary at cell 3.
TEMP_COPY_CODE = ">[->+>+<<]>>[-<<+>>]"

# Loops nested deeper than the default recursion limit.
DEEP_DEPTH = 1500
DEEP_CODE = "[" * DEEP_DEPTH + "+" + "]" * DEEP_DEPTH


# ── Patterns ─────────────────────────────────────────────────────

COPY_PATTERN = "x[-y+x]"

UNBALANCED_PATTERN = "x[-y+x"

MOVE_LIBRARY = """\
# move the value of src into dst
move(src, dst):
    src[-dst+src]
clear(c): c[-]

move(a, b)
"""

COPY_LIBRARY = """\
copy(src, dst):
    src[-dst+tmp+src]
    tmp[-src+tmp]

copy(a, b)
"""

RECURSIVE_LIBRARY = """\
forever(a): a forever(a)
forever(x)
"""


@pytest.fixture
def small_budget():
    return MatcherConfig(max_steps=10)


@pytest.fixture
def negative_cells():
    return MatcherConfig(allow_negative_cells=True)
