"""sgdnet public API."""

from .config import (
    NetworkConfiguration,
    config_from_mapping,
    load_config,
    new_config,
    training_data_from_mapping,
)
from .core import activations  # noqa: F401
from .core.activations import ACTIVATIONS, ActivationFunction, ActivationRegistry
from .core.matrix import Matrix
from .core.types import DataRow, TrainingState
from .data.training_data import TrainingData
from .errors import (
    DeserializationError,
    IndexOutOfRangeError,
    SgdnetError,
    ShapeMismatchError,
    SizeMismatchError,
    TrainingError,
)
from .snapshot import MatrixSaveData, SaveData
from .training.losses import ERRORS, ErrorFunction, ErrorRegistry
from .training.network import Network, dump, load

__all__ = [
    "ACTIVATIONS",
    "ERRORS",
    "ActivationFunction",
    "ActivationRegistry",
    "DataRow",
    "DeserializationError",
    "ErrorFunction",
    "ErrorRegistry",
    "IndexOutOfRangeError",
    "Matrix",
    "MatrixSaveData",
    "Network",
    "NetworkConfiguration",
    "SaveData",
    "SgdnetError",
    "ShapeMismatchError",
    "SizeMismatchError",
    "TrainingData",
    "TrainingError",
    "TrainingState",
    "activations",
    "config_from_mapping",
    "dump",
    "load",
    "load_config",
    "new_config",
    "training_data_from_mapping",
]
