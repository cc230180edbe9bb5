"""Error function registry used for reporting and early stopping.

The log-based variants apply no epsilon: a prediction of exactly ``0`` or
``1`` produces ``inf``/``nan`` (NumPy emits a ``RuntimeWarning``). Callers
pairing cross entropy with an unbounded activation must keep outputs inside
``(0, 1)`` themselves.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterator, Mapping, Sequence, Tuple

import numpy as np

from ..core.types import Array
from ..errors import SizeMismatchError

ErrorFn = Callable[[Array, Array], float]


class ErrorFunction(enum.IntEnum):
    """Selector ids. The numeric values are persisted in model documents."""

    MEAN_SQUARED_ERROR = 0
    MEAN_ABSOLUTE_ERROR = 1
    BINARY_CROSS_ENTROPY = 2
    CATEGORICAL_CROSS_ENTROPY = 3


@dataclass(frozen=True)
class Loss:
    """Named reduction of ``(predicted, target)`` to a scalar error."""

    name: str
    fn: ErrorFn

    def compute(self, predicted: Sequence[float], target: Sequence[float]) -> float:
        pred = np.asarray(predicted, dtype=np.float64).reshape(-1)
        targ = np.asarray(target, dtype=np.float64).reshape(-1)
        if pred.size != targ.size:
            raise SizeMismatchError(
                f"{self.name}: {pred.size} predictions against {targ.size} targets"
            )
        return float(self.fn(pred, targ))

    __call__ = compute


def _mse(pred: Array, target: Array) -> float:
    return float(np.mean(np.square(pred - target)))


def _mae(pred: Array, target: Array) -> float:
    return float(np.mean(np.abs(pred - target)))


def _bce(pred: Array, target: Array) -> float:
    return float(np.mean(-(target * np.log(pred) + (1.0 - target) * np.log(1.0 - pred))))


def _cce(pred: Array, target: Array) -> float:
    return float(np.mean(-(target * np.log(pred))))


class ErrorRegistry:
    """Immutable lookup table from selector to :class:`Loss`."""

    def __init__(self, entries: Mapping[ErrorFunction, Loss]) -> None:
        self._entries: Mapping[int, Loss] = MappingProxyType(
            {int(key): value for key, value in entries.items()}
        )

    def _key(self, selector: ErrorFunction | int | str) -> int:
        if isinstance(selector, str):
            normalised = selector.strip().lower().replace("-", "_")
            for entry_id, entry in self._entries.items():
                if entry.name == normalised:
                    return entry_id
            try:
                return int(ErrorFunction[normalised.upper()])
            except KeyError as exc:
                available = ", ".join(self.names())
                raise KeyError(
                    f"Unknown error function {selector!r}. Available error functions: {available}"
                ) from exc
        return int(selector)

    def get(self, selector: ErrorFunction | int | str) -> Loss:
        key = self._key(selector)
        try:
            return self._entries[key]
        except KeyError as exc:
            raise KeyError(f"Unknown error function id: {key}") from exc

    def selector(self, selector: ErrorFunction | int | str) -> int:
        key = self._key(selector)
        if key not in self._entries:
            raise KeyError(f"Unknown error function id: {key}")
        return key

    def names(self) -> Tuple[str, ...]:
        return tuple(entry.name for _, entry in sorted(self._entries.items()))

    def with_error(self, selector: ErrorFunction | int, loss: Loss) -> "ErrorRegistry":
        entries: Dict[int, Loss] = dict(self._entries)
        entries[int(selector)] = loss
        return ErrorRegistry(entries)  # type: ignore[arg-type]

    def __contains__(self, selector: object) -> bool:
        try:
            self.get(selector)  # type: ignore[arg-type]
        except (KeyError, ValueError, TypeError):
            return False
        return True

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


ERRORS = ErrorRegistry(
    {
        ErrorFunction.MEAN_SQUARED_ERROR: Loss("mse", _mse),
        ErrorFunction.MEAN_ABSOLUTE_ERROR: Loss("mae", _mae),
        ErrorFunction.BINARY_CROSS_ENTROPY: Loss("bce", _bce),
        ErrorFunction.CATEGORICAL_CROSS_ENTROPY: Loss("cce", _cce),
    }
)

__all__ = ["ERRORS", "ErrorFunction", "ErrorRegistry", "Loss"]
