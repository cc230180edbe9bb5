"""Row store with a shuffled train/test split and an epoch cursor."""

from __future__ import annotations

import math
from typing import Iterator, List, Sequence, Tuple

import numpy as np

from ..core.types import DataRow
from ..utils import make_rng


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class TrainingData:
    """Dataset container consumed by :meth:`Network.train`.

    ``prepare`` must run before rows are drawn; :meth:`Network.train` calls it
    itself. The split is a fresh random permutation every time.
    """

    def __init__(
        self,
        iterations: int,
        split: float,
        target_error: float,
        *,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        if int(iterations) < 0:
            raise ValueError("iterations must be >= 0")
        if not 0.0 < float(split) <= 1.0:
            raise ValueError("split must be in (0, 1]")
        if float(target_error) < 0.0:
            raise ValueError("target_error must be >= 0")
        self.iterations = int(iterations)
        self.split = float(split)
        self.target_error = float(target_error)
        self.rng = make_rng(rng)
        self.rows: List[DataRow] = []
        self._train_rows: List[DataRow] = []
        self._test_rows: List[DataRow] = []
        self._position = 0

    def add_row(self, inputs: Sequence[float], outputs: Sequence[float]) -> None:
        self.rows.append(
            DataRow(
                input=tuple(float(v) for v in inputs),
                output=tuple(float(v) for v in outputs),
            )
        )

    def prepare(self) -> None:
        """Shuffle the rows and split them into training and test partitions."""

        n = len(self.rows)
        train_count = _round_half_up(n * self.split)
        index = list(range(n))
        for _ in range(n):
            p1 = int(self.rng.integers(n))
            p2 = int(self.rng.integers(n))
            index[p1], index[p2] = index[p2], index[p1]
        self._train_rows = [self.rows[i] for i in index[:train_count]]
        self._test_rows = [self.rows[i] for i in index[train_count:]]
        self._position = 0

    def next_row(self) -> DataRow | None:
        """Return the next training row, or ``None`` once the epoch is spent.

        Returning ``None`` also rewinds the cursor, so the following call
        starts the next epoch.
        """

        if self._position >= len(self._train_rows):
            self._position = 0
            return None
        row = self._train_rows[self._position]
        self._position += 1
        return row

    def epoch(self) -> Iterator[DataRow]:
        while True:
            row = self.next_row()
            if row is None:
                return
            yield row

    def random_training_row(self) -> DataRow:
        if not self._train_rows:
            raise IndexError("no training rows; call prepare() on a non-empty dataset")
        return self._train_rows[int(self.rng.integers(len(self._train_rows)))]

    def test_data(self) -> Tuple[DataRow, ...]:
        return tuple(self._test_rows)

    def training_data(self) -> Tuple[DataRow, ...]:
        return tuple(self._train_rows)

    def training_count(self) -> int:
        return len(self._train_rows)

    def test_count(self) -> int:
        return len(self._test_rows)

    def __len__(self) -> int:
        return len(self.rows)


__all__ = ["TrainingData"]
