"""Typed failures raised by the sgdnet core."""

from __future__ import annotations


class SgdnetError(Exception):
    """Base class for every failure raised by sgdnet."""


class ShapeMismatchError(SgdnetError, ValueError):
    """Matrix operands have incompatible dimensions."""


class IndexOutOfRangeError(SgdnetError, IndexError):
    """A matrix cell was addressed outside its bounds."""


class SizeMismatchError(SgdnetError, ValueError):
    """A vector length disagrees with the layer it is fed to."""


class DeserializationError(SgdnetError, ValueError):
    """A persisted model document is missing fields or is malformed."""


class TrainingError(SgdnetError, RuntimeError):
    """Feedforward or backpropagation failed inside the training loop."""


__all__ = [
    "SgdnetError",
    "ShapeMismatchError",
    "IndexOutOfRangeError",
    "SizeMismatchError",
    "DeserializationError",
    "TrainingError",
]
