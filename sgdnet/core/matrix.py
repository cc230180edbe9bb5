"""Dense row-major matrix used by the network."""

from __future__ import annotations

from typing import Callable, Iterable, List, Sequence, Tuple

import numpy as np

from ..errors import IndexOutOfRangeError, ShapeMismatchError, SizeMismatchError
from .types import Array

ElementFn = Callable[[Array], Array]


class Matrix:
    """Two dimensional float64 matrix stored as a flat row-major array.

    Dimensions are always given column first: ``Matrix(cols, rows)``. Cell
    ``(col, row)`` lives at offset ``row * cols + col`` of :attr:`values`.
    Arithmetic returns new matrices; only :meth:`set` and :meth:`set_values`
    mutate the receiver.
    """

    __slots__ = ("_cols", "_rows", "_values")

    def __init__(self, cols: int, rows: int, values: Iterable[float] | None = None) -> None:
        cols = int(cols)
        rows = int(rows)
        if cols < 0 or rows < 0:
            raise ShapeMismatchError(f"Matrix dimensions must be non-negative, got {cols}x{rows}")
        self._cols = cols
        self._rows = rows
        if values is None:
            self._values = np.zeros(cols * rows, dtype=np.float64)
        else:
            data = np.array(values, dtype=np.float64).reshape(-1)
            if data.size != cols * rows:
                raise SizeMismatchError(
                    f"Expected {cols * rows} values for a {cols}x{rows} matrix, got {data.size}"
                )
            self._values = data

    # ------------------------------------------------------------------
    # Constructors

    @classmethod
    def from_values(cls, values: Sequence[float]) -> "Matrix":
        """Return a single-row matrix holding ``values``."""

        data = np.array(values, dtype=np.float64).reshape(-1)
        return cls(data.size, 1, data)

    @classmethod
    def random(cls, cols: int, rows: int, rng: np.random.Generator) -> "Matrix":
        """Return a matrix filled with uniform draws from ``[0, 1)``."""

        return cls(cols, rows, rng.random(int(cols) * int(rows)))

    # ------------------------------------------------------------------
    # Accessors

    @property
    def cols(self) -> int:
        return self._cols

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def shape(self) -> Tuple[int, int]:
        """``(cols, rows)``, matching the constructor order."""

        return self._cols, self._rows

    @property
    def values(self) -> Array:
        return self._values.copy()

    def tolist(self) -> List[float]:
        return [float(v) for v in self._values]

    def to_array(self) -> Array:
        """Return a ``(rows, cols)`` NumPy copy."""

        return self._values.reshape(self._rows, self._cols).copy()

    def _offset(self, col: int, row: int) -> int:
        if col < 0 or col >= self._cols:
            raise IndexOutOfRangeError(
                f"column out of range: {self._cols - 1} maximum, {col} requested"
            )
        if row < 0 or row >= self._rows:
            raise IndexOutOfRangeError(
                f"row out of range: {self._rows - 1} maximum, {row} requested"
            )
        return row * self._cols + col

    def at(self, col: int, row: int) -> float:
        return float(self._values[self._offset(col, row)])

    def set(self, col: int, row: int, value: float) -> None:
        self._values[self._offset(col, row)] = float(value)

    def set_values(self, values: Sequence[float] | None) -> None:
        """Replace the backing storage with ``values``."""

        if values is None:
            raise SizeMismatchError("missing values")
        data = np.array(values, dtype=np.float64).reshape(-1)
        if data.size != self._values.size:
            raise SizeMismatchError(
                f"size error: expected {self._values.size} values, got {data.size}"
            )
        self._values = data

    # ------------------------------------------------------------------
    # Algebra

    def _require_same_shape(self, other: "Matrix", op: str) -> None:
        if self._cols != other._cols or self._rows != other._rows:
            raise ShapeMismatchError(
                f"{op}: shape {self.shape} does not match {other.shape}"
            )

    def multiply(self, other: "Matrix") -> "Matrix":
        """Dot product ``self · other``; result is ``(other.cols, self.rows)``."""

        if self._cols != other._rows:
            raise ShapeMismatchError(
                f"multiply: {self._cols} columns cannot meet {other._rows} rows"
            )
        left = self._values.reshape(self._rows, self._cols)
        right = other._values.reshape(other._rows, other._cols)
        return Matrix(other._cols, self._rows, (left @ right).reshape(-1))

    def multiply_elements(self, other: "Matrix") -> "Matrix":
        self._require_same_shape(other, "multiply_elements")
        return Matrix(self._cols, self._rows, self._values * other._values)

    def add(self, other: "Matrix") -> "Matrix":
        self._require_same_shape(other, "add")
        return Matrix(self._cols, self._rows, self._values + other._values)

    def multiply_scalar(self, value: float) -> "Matrix":
        return Matrix(self._cols, self._rows, self._values * float(value))

    def add_scalar(self, value: float) -> "Matrix":
        return Matrix(self._cols, self._rows, self._values + float(value))

    def negative(self) -> "Matrix":
        return Matrix(self._cols, self._rows, -self._values)

    def transpose(self) -> "Matrix":
        grid = self._values.reshape(self._rows, self._cols)
        return Matrix(self._rows, self._cols, grid.T.reshape(-1))

    def apply_function(self, fn: ElementFn) -> "Matrix":
        """Return a new matrix with the vectorised ``fn`` applied to every cell."""

        result = np.asarray(fn(self._values.copy()), dtype=np.float64).reshape(-1)
        return Matrix(self._cols, self._rows, result)

    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._values, other._values))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Matrix(cols={self._cols}, rows={self._rows}, values={self.tolist()!r})"


__all__ = ["Matrix"]
