"""Activation functions and the registry that resolves them.

Every derivative is written in terms of the activation's *output* ``y`` rather
than the raw weighted sum, so backpropagation can reuse the values cached by
the forward pass. This is exact for every variant except Swish and GELU,
whose derivatives genuinely depend on the pre-activation input; for those the
analytic derivative is evaluated at ``y`` and the entry is flagged
``exact=False``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterator, Mapping, Tuple

import numpy as np

from .types import Array

ScalarFn = Callable[[Array], Array]

_GELU_K = np.sqrt(2.0 / np.pi)
_GELU_C = 0.044715
_LEAKY_SLOPE = 0.01


class ActivationFunction(enum.IntEnum):
    """Selector ids. The numeric values are persisted in model documents."""

    SIGMOID = 0
    RELU = 1
    TANH = 2
    LEAKY_RELU = 3
    SOFTPLUS = 4
    SWISH = 5
    ELU = 6
    GELU = 7
    LINEAR = 8


def sigmoid(x: Array) -> Array:
    return 1.0 / (1.0 + np.exp(-x))


def sigmoid_derivative(y: Array) -> Array:
    return y * (1.0 - y)


def relu(x: Array) -> Array:
    """Return the ReLU activation."""

    return np.maximum(x, 0.0)


def relu_derivative(y: Array) -> Array:
    return np.where(y > 0, 1.0, 0.0)


def tanh(x: Array) -> Array:
    return np.tanh(x)


def tanh_derivative(y: Array) -> Array:
    return 1.0 - y * y


def leaky_relu(x: Array) -> Array:
    return np.where(x > 0, x, _LEAKY_SLOPE * x)


def leaky_relu_derivative(y: Array) -> Array:
    return np.where(y > 0, 1.0, _LEAKY_SLOPE)


def softplus(x: Array) -> Array:
    return np.logaddexp(0.0, x)


def softplus_derivative(y: Array) -> Array:
    # sigma(x) rewritten with x = log(e^y - 1)
    return 1.0 - np.exp(-y)


def swish(x: Array) -> Array:
    return x * sigmoid(x)


def swish_derivative(y: Array) -> Array:
    """Swish derivative evaluated at the output; approximate for ``y < 0``."""

    s = sigmoid(y)
    return s + y * s * (1.0 - s)


def elu(x: Array) -> Array:
    return np.where(x > 0, x, np.expm1(np.minimum(x, 0.0)))


def elu_derivative(y: Array) -> Array:
    return np.where(y > 0, 1.0, y + 1.0)


def gelu(x: Array) -> Array:
    return 0.5 * x * (1.0 + np.tanh(_GELU_K * (x + _GELU_C * x**3)))


def gelu_derivative(y: Array) -> Array:
    """GELU derivative evaluated at the output; approximate away from ``y >> 0``."""

    t = np.tanh(_GELU_K * (y + _GELU_C * y**3))
    return 0.5 * (1.0 + t) + 0.5 * y * (1.0 - t * t) * _GELU_K * (1.0 + 3.0 * _GELU_C * y * y)


def linear(x: Array) -> Array:
    return np.asarray(x, dtype=np.float64)


def linear_derivative(y: Array) -> Array:
    return np.ones_like(y, dtype=np.float64)


@dataclass(frozen=True)
class Activation:
    """A forward function paired with its output-space derivative."""

    name: str
    value: ScalarFn
    derivative: ScalarFn
    exact: bool = True

    def __call__(self, x: Array) -> Array:
        return self.value(x)


class ActivationRegistry:
    """Immutable lookup table from selector to :class:`Activation`."""

    def __init__(self, entries: Mapping[ActivationFunction, Activation]) -> None:
        self._entries: Mapping[int, Activation] = MappingProxyType(
            {int(key): value for key, value in entries.items()}
        )

    def _key(self, selector: ActivationFunction | int | str) -> int:
        if isinstance(selector, str):
            normalised = selector.strip().upper().replace("-", "_")
            for entry_id, entry in self._entries.items():
                if entry.name.upper() == normalised:
                    return entry_id
            try:
                return int(ActivationFunction[normalised])
            except KeyError as exc:
                available = ", ".join(self.names())
                raise KeyError(
                    f"Unknown activation {selector!r}. Available activations: {available}"
                ) from exc
        return int(selector)

    def get(self, selector: ActivationFunction | int | str) -> Activation:
        key = self._key(selector)
        try:
            return self._entries[key]
        except KeyError as exc:
            raise KeyError(f"Unknown activation id: {key}") from exc

    def selector(self, selector: ActivationFunction | int | str) -> int:
        """Return the numeric id for ``selector``, validating it exists."""

        key = self._key(selector)
        if key not in self._entries:
            raise KeyError(f"Unknown activation id: {key}")
        return key

    def names(self) -> Tuple[str, ...]:
        return tuple(entry.name for _, entry in sorted(self._entries.items()))

    def with_activation(
        self, selector: ActivationFunction | int, activation: Activation
    ) -> "ActivationRegistry":
        """Return a copy of the registry with ``selector`` bound to ``activation``."""

        entries: Dict[int, Activation] = dict(self._entries)
        entries[int(selector)] = activation
        return ActivationRegistry(entries)  # type: ignore[arg-type]

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


ACTIVATIONS = ActivationRegistry(
    {
        ActivationFunction.SIGMOID: Activation("sigmoid", sigmoid, sigmoid_derivative),
        ActivationFunction.RELU: Activation("relu", relu, relu_derivative),
        ActivationFunction.TANH: Activation("tanh", tanh, tanh_derivative),
        ActivationFunction.LEAKY_RELU: Activation(
            "leaky_relu", leaky_relu, leaky_relu_derivative
        ),
        ActivationFunction.SOFTPLUS: Activation("softplus", softplus, softplus_derivative),
        ActivationFunction.SWISH: Activation("swish", swish, swish_derivative, exact=False),
        ActivationFunction.ELU: Activation("elu", elu, elu_derivative),
        ActivationFunction.GELU: Activation("gelu", gelu, gelu_derivative, exact=False),
        ActivationFunction.LINEAR: Activation("linear", linear, linear_derivative),
    }
)


__all__ = [
    "ACTIVATIONS",
    "Activation",
    "ActivationFunction",
    "ActivationRegistry",
    "elu",
    "gelu",
    "leaky_relu",
    "linear",
    "relu",
    "sigmoid",
    "sigmoid_derivative",
    "softplus",
    "swish",
    "tanh",
    "tanh_derivative",
]
