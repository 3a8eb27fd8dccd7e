from datetime import date, timedelta
from pathlib import Path
import sys

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from stock_forecaster.core.exceptions import InsufficientDataError, TrainingCancelledError
from stock_forecaster.core.history import PricePoint
from stock_forecaster.core.modeling.network import NeuralNetwork
from stock_forecaster.core.modeling.trainer import (
    CancellationToken,
    Trainer,
    build_training_samples,
)


def _linear_history(count: int, start: float = 100.0):
    first = date(2024, 3, 1)
    return [
        PricePoint(date=first + timedelta(days=i), price=start + i, volume=1_000.0 + 10 * i)
        for i in range(count)
    ]


class _CancelAfter:
    """Token that reports cancellation once it has been polled ``limit`` times."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.checks = 0

    @property
    def cancelled(self) -> bool:
        self.checks += 1
        return self.checks > self.limit


def test_samples_combine_price_window_and_indicators():
    history = _linear_history(25)

    samples, params = build_training_samples(history, window_length=10)

    assert len(samples) == 15
    assert params.min == 100.0 and params.max == 124.0
    first = samples[0]
    assert first.input.shape == (16,)
    np.testing.assert_allclose(first.input[:10], np.arange(10) / 24.0)
    assert first.target[0] == pytest.approx(10 / 24.0)
    assert np.all((first.input[10:] >= 0.0) & (first.input[10:] <= 1.0))


def test_twenty_points_is_the_minimum_for_window_ten():
    samples, _ = build_training_samples(_linear_history(20), window_length=10)
    assert len(samples) == 10

    with pytest.raises(InsufficientDataError) as excinfo:
        build_training_samples(_linear_history(19), window_length=10)

    assert excinfo.value.required == 20
    assert excinfo.value.available == 19


def test_training_error_decreases_on_trending_series():
    samples, _ = build_training_samples(_linear_history(40), window_length=10)
    network = NeuralNetwork([16, 8, 1], learning_rate=0.1, seed=7)

    report = Trainer(network, seed=7).train(samples, max_epochs=3000, error_threshold=0.01)

    assert report.converged
    assert report.training_error < 0.01
    assert report.training_error < report.error_history[0]
    assert np.mean(report.error_history[-5:]) <= np.mean(report.error_history[:5])
    assert report.iterations == len(report.error_history)


def test_training_stops_after_first_epoch_when_threshold_is_loose():
    samples, _ = build_training_samples(_linear_history(25), window_length=10)
    network = NeuralNetwork([16, 4, 1], seed=0)

    report = Trainer(network, seed=0).train(samples, max_epochs=50, error_threshold=1.0)

    assert report.iterations == 1
    assert report.converged


def test_training_runs_all_epochs_without_convergence():
    samples, _ = build_training_samples(_linear_history(25), window_length=10)
    network = NeuralNetwork([16, 4, 1], seed=0)

    report = Trainer(network, seed=0).train(samples, max_epochs=5, error_threshold=0.0)

    assert report.iterations == 5
    assert not report.converged
    assert len(report.error_history) == 5


def test_cancelled_token_stops_before_first_epoch():
    samples, _ = build_training_samples(_linear_history(25), window_length=10)
    network = NeuralNetwork([16, 4, 1], seed=0)
    weights_before = network.layers[0].weights.copy()
    token = CancellationToken()
    token.cancel()

    with pytest.raises(TrainingCancelledError) as excinfo:
        Trainer(network, seed=0).train(samples, max_epochs=10, cancel_token=token)

    assert excinfo.value.epoch == 0
    np.testing.assert_array_equal(network.layers[0].weights, weights_before)


def test_cancellation_is_checked_between_epochs():
    samples, _ = build_training_samples(_linear_history(25), window_length=10)
    network = NeuralNetwork([16, 4, 1], seed=0)

    with pytest.raises(TrainingCancelledError) as excinfo:
        Trainer(network, seed=0).train(
            samples, max_epochs=100, error_threshold=0.0, cancel_token=_CancelAfter(3)
        )

    assert excinfo.value.epoch == 3


def test_trainer_rejects_empty_sample_set():
    network = NeuralNetwork([16, 4, 1], seed=0)

    with pytest.raises(InsufficientDataError):
        Trainer(network).train([])
