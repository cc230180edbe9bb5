from __future__ import annotations

from typing import List, Sequence

import pytest

# bit-A, bit-B, selector (0=AND 1=OR 2=XOR 3=NAND 4=NOR), expected bit
TRUTH_TABLE: List[Sequence[float]] = [
    (0, 0, 0, 0),
    (0, 1, 0, 0),
    (1, 0, 0, 0),
    (1, 1, 0, 1),
    (0, 0, 1, 0),
    (0, 1, 1, 1),
    (1, 0, 1, 1),
    (1, 1, 1, 1),
    (0, 0, 2, 0),
    (0, 1, 2, 1),
    (1, 0, 2, 1),
    (1, 1, 2, 0),
    (0, 0, 3, 1),
    (0, 1, 3, 1),
    (1, 0, 3, 1),
    (1, 1, 3, 0),
    (0, 0, 4, 1),
    (0, 1, 4, 0),
    (1, 0, 4, 0),
    (1, 1, 4, 0),
]


class IdentitySplitRng:
    """Random source whose swaps are all no-ops, leaving rows in insertion order."""

    def integers(self, low, high=None, size=None):
        return 0

    def random(self, size=None):
        return 0.0


@pytest.fixture
def truth_table() -> List[Sequence[float]]:
    return [tuple(float(v) for v in row) for row in TRUTH_TABLE]


@pytest.fixture
def identity_rng() -> IdentitySplitRng:
    return IdentitySplitRng()
