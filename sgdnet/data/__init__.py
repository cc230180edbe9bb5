"""Dataset containers for sgdnet."""

from ..core.types import DataRow
from .training_data import TrainingData

__all__ = ["DataRow", "TrainingData"]
