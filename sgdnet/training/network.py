"""Fully connected network trained by per-sample gradient descent."""

from __future__ import annotations

import io
import time
import warnings
from typing import IO, TYPE_CHECKING, List, Mapping, Sequence, Tuple

import numpy as np

from ..core.activations import ACTIVATIONS, Activation, ActivationFunction, ActivationRegistry
from ..core.matrix import Matrix
from ..core.types import Array, DataRow, TrainingState
from ..data.training_data import TrainingData
from ..errors import DeserializationError, SgdnetError, SizeMismatchError, TrainingError
from ..snapshot import MatrixSaveData, SaveData
from ..utils import make_rng
from .losses import ERRORS, ErrorFunction, ErrorRegistry, Loss

if TYPE_CHECKING:  # pragma: no cover
    from ..config import NetworkConfiguration


def _softmax(values: Array) -> Array:
    shifted = values - np.max(values)
    exp = np.exp(shifted)
    return exp / np.sum(exp)


class Network:
    """Feedforward network with one weight and one bias matrix per layer gap.

    Vectors travel as single-row matrices: a layer of ``n`` neurons is a
    ``Matrix(n, 1)`` and the weights between layers ``i`` and ``i + 1`` are a
    ``Matrix(topology[i + 1], topology[i])``, so the forward step is
    ``values · W + b``.

    Weights and biases are drawn uniformly from ``[0, 1)``; pass ``rng`` (a
    seed or a ``numpy.random.Generator``) for reproducible networks.

    With ``softmax`` enabled the activated output layer is kept in
    :attr:`activated_output` and :meth:`predict` returns its softmax. The
    output update is then the categorical cross entropy step for targets that
    sum to one.
    """

    def __init__(
        self,
        config: "NetworkConfiguration",
        *,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        self._configure(
            topology=config.topology,
            learning_rate=config.learning_rate,
            activation=config.activation,
            error=config.error,
            softmax=config.softmax,
            quiet=config.quiet,
            activations=config.activations,
            errors=config.errors,
        )
        generator = make_rng(rng)
        weights: List[Matrix] = []
        biases: List[Matrix] = []
        for in_dim, out_dim in zip(self._topology[:-1], self._topology[1:]):
            weights.append(Matrix.random(out_dim, in_dim, generator))
            biases.append(Matrix.random(out_dim, 1, generator))
        self.weight_matrices = weights
        self.bias_matrices = biases
        self.state = TrainingState.INITIALIZED

    def _configure(
        self,
        *,
        topology: Sequence[int],
        learning_rate: float,
        activation: ActivationFunction | int,
        error: ErrorFunction | int,
        softmax: bool,
        quiet: bool,
        activations: ActivationRegistry,
        errors: ErrorRegistry,
    ) -> None:
        self.state = TrainingState.UNINITIALIZED
        self._topology: Tuple[int, ...] = tuple(int(n) for n in topology)
        self._learning_rate = float(learning_rate)
        self._activation_id = int(activation)
        self._error_id = int(error)
        self._activation: Activation = activations.get(self._activation_id)
        self._error: Loss = errors.get(self._error_id)
        self._softmax = bool(softmax)
        self.debug = not quiet
        self.epochs_run = 0
        self.weight_matrices: List[Matrix] = []
        self.bias_matrices: List[Matrix] = []
        self.value_matrices: List[Matrix] = [Matrix(n, 1) for n in self._topology]
        self.activated_output = Matrix(self._topology[-1], 1)
        if not self._activation.exact:
            warnings.warn(
                f"{self._activation.name} derivative is approximated from the layer output",
                UserWarning,
                stacklevel=3,
            )

    # ------------------------------------------------------------------
    # Introspection

    @property
    def topology(self) -> Tuple[int, ...]:
        return self._topology

    @property
    def learning_rate(self) -> float:
        return self._learning_rate

    @property
    def activation(self) -> int:
        return self._activation_id

    @property
    def error_function(self) -> int:
        return self._error_id

    @property
    def softmax(self) -> bool:
        return self._softmax

    def parameter_count(self) -> int:
        return int(
            sum(w.cols * w.rows for w in self.weight_matrices)
            + sum(b.cols * b.rows for b in self.bias_matrices)
        )

    # ------------------------------------------------------------------
    # Forward / backward

    def _feed_forward(self, inputs: Sequence[float]) -> None:
        data = np.asarray(inputs, dtype=np.float64).reshape(-1)
        if data.size != self._topology[0]:
            raise SizeMismatchError(
                f"incorrect input size: expected {self._topology[0]}, got {data.size}"
            )
        values = Matrix.from_values(data)
        for i, weights in enumerate(self.weight_matrices):
            self.value_matrices[i] = values
            values = (
                values.multiply(weights)
                .add(self.bias_matrices[i])
                .apply_function(self._activation.value)
            )
        self.activated_output = values
        if self._softmax:
            values = values.apply_function(_softmax)
        self.value_matrices[-1] = values

    def _back_propagate(self, targets: Sequence[float]) -> None:
        target = np.asarray(targets, dtype=np.float64).reshape(-1)
        if target.size != self._topology[-1]:
            raise SizeMismatchError(
                f"output is incorrect size: expected {self._topology[-1]}, got {target.size}"
            )
        error = Matrix.from_values(target).add(self.value_matrices[-1].negative())
        last = len(self.weight_matrices) - 1
        for i in range(last, -1, -1):
            previous_error = error.multiply(self.weight_matrices[i].transpose())
            outputs = self.value_matrices[i + 1]
            if self._softmax and i == last:
                # cross entropy through softmax(a) gives t - p with respect to a
                outputs = self.activated_output
            d_outputs = outputs.apply_function(self._activation.derivative)
            gradients = error.multiply_elements(d_outputs).multiply_scalar(self._learning_rate)
            weight_gradients = self.value_matrices[i].transpose().multiply(gradients)
            self.weight_matrices[i] = self.weight_matrices[i].add(weight_gradients)
            self.bias_matrices[i] = self.bias_matrices[i].add(gradients)
            error = previous_error

    def predict(self, inputs: Sequence[float]) -> List[float]:
        """Run one forward pass and return the output layer."""

        self._feed_forward(inputs)
        return self.value_matrices[-1].tolist()

    def train_row(self, inputs: Sequence[float], targets: Sequence[float]) -> None:
        """Apply a single gradient step for one example."""

        self._feed_forward(inputs)
        self._back_propagate(targets)

    # ------------------------------------------------------------------
    # Training loop

    def train(
        self,
        data: TrainingData,
        callbacks: Sequence[object] | None = None,
    ) -> float:
        """Train on ``data`` and return the final mean evaluation error.

        Each epoch visits every training row once, then scores every test row
        with the configured error function. Training stops early once every
        row error and their mean are within ``data.target_error``. Callbacks
        receive ``on_epoch(epoch, metrics)`` after each evaluation.
        """

        if len(data) == 0:
            raise SizeMismatchError("training data is empty")
        callbacks = list(callbacks or [])
        start = time.perf_counter()
        data.prepare()
        evaluation_rows = data.test_data()
        if not evaluation_rows:
            warnings.warn(
                "test partition is empty; evaluating against the training rows",
                UserWarning,
                stacklevel=2,
            )
            evaluation_rows = data.training_data()
        if self.debug:
            self._print_startup_summary(data)

        self.state = TrainingState.TRAINING
        self.epochs_run = 0
        mean_error = 0.0
        for epoch in range(1, data.iterations + 1):
            for row in data.epoch():
                try:
                    self.train_row(row.input, row.output)
                except SgdnetError as exc:
                    raise TrainingError(f"training error at epoch {epoch}: {exc}") from exc
            try:
                mean_error, worst_error, within = self._evaluate(evaluation_rows, data.target_error)
            except SgdnetError as exc:
                raise TrainingError(f"error testing error value at epoch {epoch}: {exc}") from exc
            self.epochs_run = epoch
            metrics = {
                "loss": mean_error,
                "max_row_loss": worst_error,
                "within_tolerance": 1.0 if within else 0.0,
            }
            self._emit_epoch(epoch, metrics, callbacks)
            if within and mean_error <= data.target_error:
                self.state = TrainingState.CONVERGED
                break
        else:
            self.state = TrainingState.EXHAUSTED

        if self.debug:
            elapsed = time.perf_counter() - start
            print(
                f"training complete: {self.epochs_run} epochs, "
                f"error {mean_error:.6g}, {elapsed:.2f}s ({self.state.value})"
            )
        return mean_error

    def _evaluate(
        self, rows: Sequence[DataRow], target_error: float
    ) -> Tuple[float, float, bool]:
        errors = []
        for row in rows:
            prediction = self.predict(row.input)
            errors.append(self._error.compute(prediction, row.output))
        values = np.asarray(errors, dtype=np.float64)
        within = bool(np.all(values <= target_error))
        return float(np.mean(values)), float(np.max(values)), within

    @staticmethod
    def _emit_epoch(
        epoch: int,
        metrics: Mapping[str, float],
        callbacks: Sequence[object],
    ) -> None:
        for callback in callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)

    def _print_startup_summary(self, data: TrainingData) -> None:
        print("=== sgdnet training ===")
        print(f"Topology      : {list(self._topology)}")
        print(f"Hidden layers : {len(self._topology) - 2}")
        print(f"Activation    : {self._activation.name}")
        print(f"Error         : {self._error.name}")
        print(f"Learning rate : {self._learning_rate}")
        print(f"Parameters    : {self.parameter_count()}")
        print(f"Training rows : {data.training_count()}")
        print(f"Test rows     : {data.test_count()}")
        print(f"Iterations    : {data.iterations}")
        print("=======================")

    # ------------------------------------------------------------------
    # Snapshots

    def to_save_data(self) -> SaveData:
        return SaveData(
            topology=self._topology,
            weights=tuple(MatrixSaveData.from_matrix(w) for w in self.weight_matrices),
            biases=tuple(MatrixSaveData.from_matrix(b) for b in self.bias_matrices),
            learning_rate=self._learning_rate,
            activation=self._activation_id,
            error=self._error_id,
            softmax=self._softmax,
        )

    @classmethod
    def from_save_data(
        cls,
        data: SaveData | None,
        *,
        activations: ActivationRegistry = ACTIVATIONS,
        errors: ErrorRegistry = ERRORS,
        quiet: bool = True,
    ) -> "Network":
        """Rebuild a network; the activation cache starts zeroed."""

        if data is None:
            raise DeserializationError("missing save data")
        data.validate()
        if data.activation not in activations:
            raise DeserializationError(f"unknown activation id: {data.activation}")
        if data.error not in errors:
            raise DeserializationError(f"unknown error function id: {data.error}")
        network = cls.__new__(cls)
        network._configure(
            topology=data.topology,
            learning_rate=data.learning_rate,
            activation=data.activation,
            error=data.error,
            softmax=data.softmax,
            quiet=quiet,
            activations=activations,
            errors=errors,
        )
        network.weight_matrices = [m.to_matrix() for m in data.weights]
        network.bias_matrices = [m.to_matrix() for m in data.biases]
        network.state = TrainingState.INITIALIZED
        return network

    def to_json(self) -> str:
        return self.to_save_data().to_json()

    @classmethod
    def from_json(cls, payload: str | bytes | bytearray, **kwargs) -> "Network":
        return cls.from_save_data(SaveData.from_json(payload), **kwargs)


def dump(network: Network, fp: IO) -> None:
    """Write ``network`` as a JSON document to a text or binary file object."""

    payload = network.to_json()
    if isinstance(fp, io.TextIOBase) or "b" not in getattr(fp, "mode", "b"):
        fp.write(payload)
    else:
        fp.write(payload.encode("utf-8"))


def load(fp: IO, **kwargs) -> Network:
    """Read a network previously written with :func:`dump`."""

    return Network.from_json(fp.read(), **kwargs)


__all__ = ["Network", "dump", "load"]
