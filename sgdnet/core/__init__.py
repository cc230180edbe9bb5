"""Core numerical primitives for sgdnet."""

from . import activations, matrix, types
from .activations import ACTIVATIONS, Activation, ActivationFunction, ActivationRegistry
from .matrix import Matrix

__all__ = [
    "ACTIVATIONS",
    "Activation",
    "ActivationFunction",
    "ActivationRegistry",
    "Matrix",
    "activations",
    "matrix",
    "types",
]
