"""End-to-end checks for the train/forecast entry points."""

import asyncio
import dataclasses
from datetime import date, timedelta
from pathlib import Path
import sys

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from stock_forecaster.core import (
    ForecasterConfig,
    InsufficientDataError,
    InvalidHistoryError,
    PredictionEngine,
    forecast,
    train_model,
)
from stock_forecaster.core.history import PricePoint


def _history(prices):
    first = date(2024, 1, 1)
    return [PricePoint(date=first + timedelta(days=i), price=float(p)) for i, p in enumerate(prices)]


def _config(**overrides):
    options = {"max_epochs": 40, "seed": 5}
    options.update(overrides)
    return ForecasterConfig(**options)


def test_train_then_forecast_on_linear_series():
    history = _history(100 + np.arange(25))

    model = train_model(history, _config())
    result = forecast(model, history, 3)

    assert model.architecture == (16, 32, 16, 8, 1)
    assert model.window_length == 10
    assert 1 <= model.iterations <= 40
    assert len(result.future_prices) == 3
    assert [d - date(2024, 1, 25) for d in result.future_dates] == [
        timedelta(days=1),
        timedelta(days=2),
        timedelta(days=3),
    ]
    assert all(price >= 0.01 for price in result.future_prices)


def test_same_seed_reproduces_training_and_forecast():
    history = _history(100 + 5 * np.sin(np.arange(30) / 3.0))

    first = train_model(history, _config())
    second = train_model(history, _config())

    assert first.training_error == second.training_error
    assert first.error_history == second.error_history
    assert forecast(first, history, 4) == forecast(second, history, 4)


def test_trained_model_is_immutable():
    history = _history(100 + np.arange(25))
    model = train_model(history, _config(max_epochs=5))

    with pytest.raises(dataclasses.FrozenInstanceError):
        model.training_error = 0.0
    assert model.network.locked


def test_retraining_leaves_earlier_model_untouched():
    history = _history(100 + np.arange(25))
    model = train_model(history, _config(max_epochs=5))
    before = forecast(model, history, 2)

    train_model(_history(200 - np.arange(25)), _config(max_epochs=5))

    assert forecast(model, history, 2) == before


def test_training_requires_window_plus_ten_points():
    with pytest.raises(InsufficientDataError) as excinfo:
        train_model(_history(100 + np.arange(19)), _config())

    assert "Required: 20, available: 19" in str(excinfo.value)


@pytest.mark.parametrize("bad_price", [0.0, -1.0, float("nan"), float("inf")])
def test_training_rejects_invalid_prices(bad_price):
    prices = list(100 + np.arange(25, dtype=float))
    prices[7] = bad_price

    with pytest.raises(InvalidHistoryError):
        train_model(_history(prices), _config())


def test_flat_history_forecasts_the_flat_price():
    history = _history([75.0] * 22)

    model = train_model(history, _config(max_epochs=10))
    result = forecast(model, history, 3)

    assert model.normalization.min == model.normalization.max == 75.0
    assert result.future_prices == pytest.approx((75.0, 75.0, 75.0))


def test_engine_defaults_to_configured_horizon():
    engine = PredictionEngine(_config(forecast_horizon=4, max_epochs=5))
    history = _history(100 + np.arange(25))

    model = engine.train_model(history)
    result = engine.forecast(model, history)

    assert len(result.future_prices) == 4


def test_async_training_matches_sync_training():
    engine = PredictionEngine(_config(max_epochs=5))
    history = _history(100 + np.arange(25))

    async def _runner():
        return await engine.train_model_async(history)

    async_model = asyncio.run(_runner())
    sync_model = engine.train_model(history)

    assert async_model.training_error == sync_model.training_error


def test_explicit_seed_overrides_config_seed():
    history = _history(100 + np.arange(25))

    model = train_model(history, _config(max_epochs=3), seed=99)

    assert model.seed == 99
