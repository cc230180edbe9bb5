"""Persisted model document.

A snapshot is a flat, JSON-friendly projection of a trained network::

    {"t": [3, 4, 1],
     "w": [{"c": 4, "r": 3, "v": [...]}, ...],
     "b": [{"c": 4, "r": 1, "v": [...]}, ...],
     "l": 0.1,
     "f": 0,
     "e": 0,
     "s": false}

``e`` (error function id) and ``s`` (softmax output) are optional and default
to mean squared error and ``False`` so documents that only carry the
activation id still load.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Sequence, Tuple

from .core.matrix import Matrix
from .errors import DeserializationError, SizeMismatchError


@dataclass(frozen=True)
class MatrixSaveData:
    cols: int
    rows: int
    values: Tuple[float, ...]

    @classmethod
    def from_matrix(cls, matrix: Matrix) -> "MatrixSaveData":
        return cls(cols=matrix.cols, rows=matrix.rows, values=tuple(matrix.tolist()))

    def to_matrix(self) -> Matrix:
        try:
            return Matrix(self.cols, self.rows, self.values)
        except (SizeMismatchError, ValueError) as exc:
            raise DeserializationError(f"malformed matrix record: {exc}") from exc

    def to_dict(self) -> dict:
        return {"c": self.cols, "r": self.rows, "v": list(self.values)}

    @classmethod
    def from_dict(cls, record: Any) -> "MatrixSaveData":
        if not isinstance(record, Mapping):
            raise DeserializationError("matrix record must be a mapping")
        missing = [key for key in ("c", "r", "v") if key not in record]
        if missing:
            raise DeserializationError(f"matrix record missing fields: {', '.join(missing)}")
        cols = _as_count(record["c"], "c")
        rows = _as_count(record["r"], "r")
        values = _as_floats(record["v"], "v")
        if len(values) != cols * rows:
            raise DeserializationError(
                f"matrix record holds {len(values)} values, expected {cols}x{rows}={cols * rows}"
            )
        return cls(cols=cols, rows=rows, values=values)


@dataclass(frozen=True)
class SaveData:
    """Everything needed to rebuild a network except its activation cache."""

    topology: Tuple[int, ...]
    weights: Tuple[MatrixSaveData, ...]
    biases: Tuple[MatrixSaveData, ...]
    learning_rate: float
    activation: int
    error: int = 0
    softmax: bool = False

    def validate(self) -> None:
        """Check the records agree with the topology."""

        if len(self.topology) < 2:
            raise DeserializationError("topology needs at least two layers")
        if any(n < 1 for n in self.topology):
            raise DeserializationError(f"invalid layer sizes in topology {list(self.topology)}")
        layers = len(self.topology) - 1
        if len(self.weights) != layers or len(self.biases) != layers:
            raise DeserializationError(
                f"topology {list(self.topology)} needs {layers} weight and bias matrices, "
                f"got {len(self.weights)} and {len(self.biases)}"
            )
        for i in range(layers):
            expected_w = (self.topology[i + 1], self.topology[i])
            expected_b = (self.topology[i + 1], 1)
            w, b = self.weights[i], self.biases[i]
            if (w.cols, w.rows) != expected_w:
                raise DeserializationError(
                    f"weight matrix {i} is {w.cols}x{w.rows}, expected {expected_w[0]}x{expected_w[1]}"
                )
            if (b.cols, b.rows) != expected_b:
                raise DeserializationError(
                    f"bias matrix {i} is {b.cols}x{b.rows}, expected {expected_b[0]}x{expected_b[1]}"
                )
            if len(w.values) != w.cols * w.rows or len(b.values) != b.cols * b.rows:
                raise DeserializationError(f"layer {i} matrix values do not match its shape")
        if not (math.isfinite(self.learning_rate) and self.learning_rate > 0):
            raise DeserializationError(f"invalid learning rate: {self.learning_rate!r}")

    def to_dict(self) -> dict:
        return {
            "t": list(self.topology),
            "w": [m.to_dict() for m in self.weights],
            "b": [m.to_dict() for m in self.biases],
            "l": self.learning_rate,
            "f": self.activation,
            "e": self.error,
            "s": self.softmax,
        }

    @classmethod
    def from_dict(cls, document: Any) -> "SaveData":
        if not isinstance(document, Mapping):
            raise DeserializationError("model document must be a mapping")
        missing = [key for key in ("t", "w", "b", "l", "f") if key not in document]
        if missing:
            raise DeserializationError(f"model document missing fields: {', '.join(missing)}")
        topology = tuple(_as_count(n, "t") for n in _as_list(document["t"], "t"))
        weights = tuple(MatrixSaveData.from_dict(r) for r in _as_list(document["w"], "w"))
        biases = tuple(MatrixSaveData.from_dict(r) for r in _as_list(document["b"], "b"))
        softmax = document.get("s", False)
        if not isinstance(softmax, bool):
            raise DeserializationError("field 's' must be a boolean")
        data = cls(
            topology=topology,
            weights=weights,
            biases=biases,
            learning_rate=_as_float(document["l"], "l"),
            activation=_as_count(document["f"], "f"),
            error=_as_count(document.get("e", 0), "e"),
            softmax=softmax,
        )
        data.validate()
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json(cls, payload: str | bytes | bytearray) -> "SaveData":
        try:
            document = json.loads(payload)
        except (TypeError, ValueError) as exc:
            raise DeserializationError(f"model document is not valid JSON: {exc}") from exc
        return cls.from_dict(document)


def _as_list(value: Any, name: str) -> List[Any]:
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes, bytearray)):
        raise DeserializationError(f"field {name!r} must be a list")
    return list(value)


def _as_count(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise DeserializationError(f"field {name!r} must be a non-negative integer, got {value!r}")
    return int(value)


def _as_float(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DeserializationError(f"field {name!r} must be a number, got {value!r}")
    return float(value)


def _as_floats(value: Any, name: str) -> Tuple[float, ...]:
    return tuple(_as_float(v, name) for v in _as_list(value, name))


__all__ = ["MatrixSaveData", "SaveData"]
