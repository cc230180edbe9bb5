from __future__ import annotations

from typing import List, Mapping, Tuple

import numpy as np
import pytest

from sgdnet import (
    Matrix,
    Network,
    NetworkConfiguration,
    SizeMismatchError,
    TrainingData,
    TrainingError,
    TrainingState,
    new_config,
)
from sgdnet.training.losses import ERRORS


class _Capture:
    def __init__(self) -> None:
        self.history: List[Tuple[int, Mapping[str, float]]] = []

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self.history.append((epoch, dict(metrics)))


def _linear_network(topology, learning_rate=0.1) -> Network:
    return Network(
        NetworkConfiguration(topology=topology, learning_rate=learning_rate, activation="linear"),
        rng=0,
    )


def _dataset(rows, iterations=5, split=0.5, target_error=0.0) -> TrainingData:
    data = TrainingData(iterations, split, target_error, rng=0)
    for inputs, outputs in rows:
        data.add_row(inputs, outputs)
    return data


def test_matrix_shapes_follow_topology() -> None:
    network = Network(new_config([3, 4, 1]), rng=1)
    assert [w.shape for w in network.weight_matrices] == [(4, 3), (1, 4)]
    assert [b.shape for b in network.bias_matrices] == [(4, 1), (1, 1)]
    assert network.parameter_count() == 3 * 4 + 4 + 4 * 1 + 1
    assert network.state is TrainingState.INITIALIZED
    for matrix in network.weight_matrices + network.bias_matrices:
        assert np.all(matrix.values >= 0.0) and np.all(matrix.values < 1.0)


def test_seeded_networks_are_identical() -> None:
    a = Network(new_config([2, 3, 2]), rng=5)
    b = Network(new_config([2, 3, 2]), rng=5)
    assert a.predict([0.3, 0.7]) == b.predict([0.3, 0.7])


def test_predict_rejects_wrong_input_size() -> None:
    network = Network(new_config([3, 2]), rng=0)
    with pytest.raises(SizeMismatchError):
        network.predict([1.0, 2.0])


def test_train_row_rejects_wrong_target_size() -> None:
    network = Network(new_config([3, 2]), rng=0)
    with pytest.raises(SizeMismatchError):
        network.train_row([1.0, 2.0, 3.0], [1.0])


def test_single_layer_gradient_step() -> None:
    network = _linear_network((1, 1))
    network.weight_matrices[0] = Matrix(1, 1, [0.5])
    network.bias_matrices[0] = Matrix(1, 1, [0.0])
    network.train_row([2.0], [3.0])
    # error 2, gradient 2 * 1 * 0.1
    assert network.weight_matrices[0].at(0, 0) == pytest.approx(0.9)
    assert network.bias_matrices[0].at(0, 0) == pytest.approx(0.2)
    assert network.predict([2.0]) == pytest.approx([2.0])


def test_hidden_error_uses_weights_before_update() -> None:
    network = _linear_network((1, 1, 1))
    network.weight_matrices = [Matrix(1, 1, [0.5]), Matrix(1, 1, [2.0])]
    network.bias_matrices = [Matrix(1, 1, [0.0]), Matrix(1, 1, [0.0])]
    network.train_row([1.0], [2.0])
    assert network.weight_matrices[1].at(0, 0) == pytest.approx(2.05)
    assert network.bias_matrices[1].at(0, 0) == pytest.approx(0.1)
    assert network.weight_matrices[0].at(0, 0) == pytest.approx(0.7)
    assert network.bias_matrices[0].at(0, 0) == pytest.approx(0.2)


def test_softmax_output_is_a_distribution() -> None:
    network = Network(
        NetworkConfiguration(topology=(2, 3, 3), softmax=True, error="cce"), rng=2
    )
    output = network.predict([0.4, -1.2])
    assert sum(output) == pytest.approx(1.0)
    assert all(0.0 < value < 1.0 for value in output)
    network.train_row([0.4, -1.2], [0.0, 1.0, 0.0])
    assert sum(network.predict([0.4, -1.2])) == pytest.approx(1.0)


def _cross_entropy_with_bias_shift(network, column, shift, inputs, target) -> float:
    shifted = Network.from_json(network.to_json())
    bias = shifted.bias_matrices[0]
    bias.set(column, 0, bias.at(column, 0) + shift)
    return ERRORS.get("cce").compute(shifted.predict(inputs), target)


def test_softmax_output_step_follows_cross_entropy_gradient() -> None:
    config = NetworkConfiguration(topology=(2, 3), learning_rate=1.0, softmax=True, error="cce")
    network = Network(config, rng=4)
    inputs, target = [0.6, -0.4], [0.0, 1.0, 0.0]
    h = 1e-6
    numeric = np.array(
        [
            (
                _cross_entropy_with_bias_shift(network, j, h, inputs, target)
                - _cross_entropy_with_bias_shift(network, j, -h, inputs, target)
            )
            / (2 * h)
            for j in range(3)
        ]
    )
    bias_before = network.bias_matrices[0].values
    weights_before = network.weight_matrices[0].values

    network.train_row(inputs, target)

    step = network.bias_matrices[0].values - bias_before
    # the loss averages over 3 outputs, the update uses the summed error
    np.testing.assert_allclose(step, -3.0 * numeric, rtol=1e-5, atol=1e-8)
    weight_step = (network.weight_matrices[0].values - weights_before).reshape(2, 3)
    np.testing.assert_allclose(weight_step, np.outer(inputs, step), atol=1e-12)


def test_approximate_activation_warns() -> None:
    with pytest.warns(UserWarning, match="swish"):
        Network(NetworkConfiguration(topology=(2, 2), activation="swish"), rng=0)


def test_zero_iterations_is_exhausted() -> None:
    network = Network(new_config([1, 1]), rng=0)
    data = _dataset([([0.0], [0.0]), ([1.0], [1.0])], iterations=0)
    assert network.train(data) == 0.0
    assert network.state is TrainingState.EXHAUSTED
    assert network.epochs_run == 0
    assert network.state.terminal


def test_loose_target_converges_after_first_epoch() -> None:
    network = Network(new_config([1, 2, 1]), rng=0)
    data = _dataset([([0.0], [0.0]), ([1.0], [1.0])], iterations=50, target_error=1.0)
    capture = _Capture()
    network.train(data, callbacks=[capture])
    assert network.state is TrainingState.CONVERGED
    assert network.epochs_run == 1
    assert [epoch for epoch, _ in capture.history] == [1]


def test_unreachable_target_exhausts_iterations() -> None:
    network = Network(new_config([1, 2, 1]), rng=0)
    data = _dataset([([0.0], [0.0]), ([1.0], [1.0])], iterations=4, target_error=0.0)
    seen = []
    network.train(data, callbacks=[lambda epoch, metrics: seen.append((epoch, metrics))])
    assert network.state is TrainingState.EXHAUSTED
    assert [epoch for epoch, _ in seen] == [1, 2, 3, 4]
    metrics = seen[-1][1]
    assert set(metrics) == {"loss", "max_row_loss", "within_tolerance"}
    assert metrics["max_row_loss"] >= metrics["loss"]
    assert metrics["within_tolerance"] == 0.0


def test_mean_within_target_but_one_row_outside_does_not_converge(identity_rng) -> None:
    network = _linear_network((1, 1))
    network.weight_matrices[0] = Matrix(1, 1, [0.0])
    network.bias_matrices[0] = Matrix(1, 1, [0.0])
    data = TrainingData(iterations=3, split=0.5, target_error=0.2, rng=identity_rng)
    # training rows already match the zero output, so nothing moves
    for x in (1.0, 2.0, 3.0, 4.0):
        data.add_row([x], [0.0])
    for x, y in ((5.0, 0.0), (6.0, 0.0), (7.0, 0.0), (8.0, 0.5**0.5)):
        data.add_row([x], [y])
    capture = _Capture()

    error = network.train(data, callbacks=[capture])

    assert network.state is TrainingState.EXHAUSTED
    assert network.epochs_run == 3
    metrics = capture.history[-1][1]
    assert metrics["within_tolerance"] == 0.0
    assert metrics["max_row_loss"] == pytest.approx(0.5)
    assert error == pytest.approx(0.125)
    assert error <= data.target_error


def test_empty_dataset_is_rejected() -> None:
    network = Network(new_config([1, 1]), rng=0)
    with pytest.raises(SizeMismatchError):
        network.train(TrainingData(5, 0.8, 0.1))


def test_empty_test_partition_falls_back_to_training_rows() -> None:
    network = Network(new_config([1, 1]), rng=0)
    data = _dataset([([0.0], [0.0]), ([1.0], [1.0])], iterations=2, split=1.0)
    with pytest.warns(UserWarning, match="test partition is empty"):
        error = network.train(data)
    assert np.isfinite(error)


def test_bad_rows_surface_as_training_error() -> None:
    network = Network(new_config([3, 1]), rng=0)
    data = _dataset([([1.0, 0.0], [1.0]), ([0.0, 1.0], [0.0])], iterations=3)
    with pytest.raises(TrainingError) as excinfo:
        network.train(data)
    assert isinstance(excinfo.value.__cause__, SizeMismatchError)
    assert network.state is TrainingState.TRAINING


def test_verbose_training_prints_summary(capsys) -> None:
    network = Network(NetworkConfiguration(topology=(1, 1), quiet=False), rng=0)
    network.train(_dataset([([0.0], [0.0]), ([1.0], [1.0])], iterations=2))
    out = capsys.readouterr().out
    assert "=== sgdnet training ===" in out
    assert "training complete: 2 epochs" in out
