"""Core typing contracts for sgdnet."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Tuple

import numpy as np

Array = np.ndarray


@dataclass(frozen=True)
class DataRow:
    """A single training example."""

    input: Tuple[float, ...]
    output: Tuple[float, ...]


class TrainingState(enum.Enum):
    """Lifecycle of a :class:`~sgdnet.training.network.Network`."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    TRAINING = "training"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"

    @property
    def terminal(self) -> bool:
        return self in (TrainingState.CONVERGED, TrainingState.EXHAUSTED)
