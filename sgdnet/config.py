"""Network configuration and loaders for JSON/YAML config files."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence, Tuple

import numpy as np

from .core.activations import ACTIVATIONS, ActivationFunction, ActivationRegistry
from .data.training_data import TrainingData
from .training.losses import ERRORS, ErrorFunction, ErrorRegistry

DEFAULT_LEARNING_RATE = 0.1


@dataclass(frozen=True)
class NetworkConfiguration:
    """Everything needed to construct a :class:`~sgdnet.training.network.Network`.

    Attributes
    ----------
    topology:
        Neuron count per layer, input and output layers included.
    learning_rate:
        Step size applied to every gradient.
    activation, error:
        Registry selectors; enum members, numeric ids or names are accepted
        and normalised to enum members.
    quiet:
        When ``False`` the network prints a run summary while training.
    softmax:
        Replace the output layer with a softmax distribution after every
        forward pass.
    activations, errors:
        Registries the selectors are resolved against.
    """

    topology: Tuple[int, ...]
    learning_rate: float = DEFAULT_LEARNING_RATE
    activation: ActivationFunction = ActivationFunction.SIGMOID
    error: ErrorFunction = ErrorFunction.MEAN_SQUARED_ERROR
    quiet: bool = True
    softmax: bool = False
    activations: ActivationRegistry = field(default=ACTIVATIONS, repr=False, compare=False)
    errors: ErrorRegistry = field(default=ERRORS, repr=False, compare=False)

    def __post_init__(self) -> None:
        topology = tuple(int(n) for n in self.topology)
        if len(topology) < 2:
            raise ValueError("topology needs at least an input and an output layer")
        if any(n < 1 for n in topology):
            raise ValueError(f"every layer needs at least one neuron: {list(topology)}")
        if not float(self.learning_rate) > 0.0:
            raise ValueError("learning_rate must be > 0")
        object.__setattr__(self, "topology", topology)
        object.__setattr__(self, "learning_rate", float(self.learning_rate))
        object.__setattr__(self, "activation", _activation_id(self.activations, self.activation))
        object.__setattr__(self, "error", _error_id(self.errors, self.error))

    def to_dict(self) -> dict:
        return {
            "topology": list(self.topology),
            "learning_rate": self.learning_rate,
            "activation": int(self.activation),
            "error": int(self.error),
            "quiet": self.quiet,
            "softmax": self.softmax,
        }


def _activation_id(registry: ActivationRegistry, selector) -> ActivationFunction | int:
    key = registry.selector(selector)
    try:
        return ActivationFunction(key)
    except ValueError:
        # registries may carry ids beyond the built-in enum
        return key


def _error_id(registry: ErrorRegistry, selector) -> ErrorFunction | int:
    key = registry.selector(selector)
    try:
        return ErrorFunction(key)
    except ValueError:
        return key


def new_config(topology: Sequence[int]) -> NetworkConfiguration:
    """Return a configuration with the default learning rate and sigmoid/MSE."""

    return NetworkConfiguration(topology=tuple(topology))


def config_from_mapping(
    config: Mapping[str, object],
    *,
    activations: ActivationRegistry = ACTIVATIONS,
    errors: ErrorRegistry = ERRORS,
) -> NetworkConfiguration:
    """Build a configuration from a plain mapping (e.g. decoded JSON/YAML)."""

    if "topology" not in config:
        raise KeyError("Network config missing required key: topology")
    topology = config["topology"]
    if not isinstance(topology, Sequence) or isinstance(topology, (str, bytes)):
        raise TypeError("topology must be a sequence of layer sizes")
    return NetworkConfiguration(
        topology=tuple(int(n) for n in topology),
        learning_rate=float(config.get("learning_rate", DEFAULT_LEARNING_RATE)),  # type: ignore[arg-type]
        activation=config.get("activation", ActivationFunction.SIGMOID),  # type: ignore[arg-type]
        error=config.get("error", ErrorFunction.MEAN_SQUARED_ERROR),  # type: ignore[arg-type]
        quiet=bool(config.get("quiet", True)),
        softmax=bool(config.get("softmax", False)),
        activations=activations,
        errors=errors,
    )


def training_data_from_mapping(
    config: Mapping[str, object],
    *,
    rng: np.random.Generator | int | None = None,
) -> TrainingData:
    """Build an empty :class:`TrainingData` from ``iterations``/``split``/``target_error``."""

    missing = [key for key in ("iterations", "split", "target_error") if key not in config]
    if missing:
        raise KeyError(f"Training config missing required keys: {', '.join(missing)}")
    seed = config.get("seed")
    return TrainingData(
        iterations=int(config["iterations"]),  # type: ignore[arg-type]
        split=float(config["split"]),  # type: ignore[arg-type]
        target_error=float(config["target_error"]),  # type: ignore[arg-type]
        rng=rng if rng is not None else (int(seed) if seed is not None else None),  # type: ignore[arg-type]
    )


def read_config_file(path: str | Path) -> Mapping[str, object]:
    """Decode a JSON or YAML config file into a mapping."""

    path = Path(path)
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load YAML config files") from exc
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def load_config(path: str | Path) -> Tuple[NetworkConfiguration, TrainingData | None]:
    """Load a network config and, when a ``training`` section exists, its dataset shell.

    The file holds a ``network`` section (or the network keys at top level)
    and an optional ``training`` section.
    """

    data = read_config_file(path)
    network_cfg = data.get("network", data)
    if not isinstance(network_cfg, Mapping):
        raise TypeError("'network' section must be a mapping")
    config = config_from_mapping(network_cfg)
    training_cfg = data.get("training")
    if training_cfg is None:
        return config, None
    if not isinstance(training_cfg, Mapping):
        raise TypeError("'training' section must be a mapping")
    return config, training_data_from_mapping(training_cfg)


__all__ = [
    "DEFAULT_LEARNING_RATE",
    "NetworkConfiguration",
    "config_from_mapping",
    "load_config",
    "new_config",
    "read_config_file",
    "training_data_from_mapping",
]
