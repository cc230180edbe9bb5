from collections import Counter

import numpy as np
import pytest

from sgdnet.data import DataRow, TrainingData


def _dataset(rows, split=0.8, rng=0):
    data = TrainingData(iterations=10, split=split, target_error=0.1, rng=rng)
    for row in rows:
        data.add_row(row[:3], row[3:])
    return data


def test_prepare_partitions_every_row(truth_table):
    data = _dataset(truth_table, rng=np.random.default_rng(5))
    data.prepare()
    assert data.training_count() == 16
    assert data.test_count() == 4
    union = Counter(data.training_data() + data.test_data())
    assert union == Counter(data.rows)


@pytest.mark.parametrize("n,split,expected", [(3, 0.5, 2), (5, 0.5, 3), (4, 0.6, 2), (7, 1.0, 7)])
def test_train_count_rounds_half_up(n, split, expected):
    data = _dataset([(i, 0, 0, 0) for i in range(n)], split=split)
    data.prepare()
    assert data.training_count() == expected
    assert data.test_count() == n - expected


def test_identity_rng_keeps_insertion_order(truth_table, identity_rng):
    data = _dataset(truth_table, rng=identity_rng)
    data.prepare()
    assert list(data.training_data()) == data.rows[:16]
    assert all(row.input[2] == 4.0 for row in data.test_data())


def test_next_row_cycles_with_none_sentinel(truth_table):
    data = _dataset(truth_table)
    data.prepare()
    first = [data.next_row() for _ in range(data.training_count())]
    assert all(isinstance(row, DataRow) for row in first)
    assert data.next_row() is None
    second = [data.next_row() for _ in range(data.training_count())]
    assert second == first
    assert data.next_row() is None


def test_epoch_generator_matches_training_partition(truth_table):
    data = _dataset(truth_table)
    data.prepare()
    assert tuple(data.epoch()) == data.training_data()
    assert tuple(data.epoch()) == data.training_data()


def test_random_training_row(truth_table):
    data = _dataset(truth_table)
    with pytest.raises(IndexError):
        data.random_training_row()
    data.prepare()
    training = set(data.training_data())
    for _ in range(10):
        assert data.random_training_row() in training


def test_add_row_stores_float_tuples():
    data = TrainingData(1, 1.0, 0.0)
    data.add_row([1, 0], [1])
    assert data.rows == [DataRow(input=(1.0, 0.0), output=(1.0,))]
    assert len(data) == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"iterations": -1, "split": 0.5, "target_error": 0.1},
        {"iterations": 1, "split": 0.0, "target_error": 0.1},
        {"iterations": 1, "split": 1.5, "target_error": 0.1},
        {"iterations": 1, "split": 0.5, "target_error": -0.1},
    ],
)
def test_constructor_validation(kwargs):
    with pytest.raises(ValueError):
        TrainingData(**kwargs)
