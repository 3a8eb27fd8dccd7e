"""Autoregressive multi-step forecasting from a trained model."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Sequence

import numpy as np

from ..exceptions import InsufficientDataError
from ..features import FeatureExtractor
from ..history import PricePoint, validate_history
from ..preprocessing import Normalizer
from .prediction_result import Model, PredictionResult

LOGGER = logging.getLogger(__name__)

MIN_FORECAST_PRICE = 0.01
MIN_CONFIDENCE = 0.3
MAX_CONFIDENCE = 0.95
CONFIDENCE_ERROR_WEIGHT = 10.0
VOLATILITY_LOOKBACK = 10


def recent_volatility(prices: np.ndarray, lookback: int = VOLATILITY_LOOKBACK) -> float:
    """Population standard deviation of the last ``lookback`` prices."""

    recent = np.asarray(prices, dtype=float)[-lookback:]
    if recent.size < 2:
        return 0.0
    return float(np.std(recent))


def confidence_score(training_error: float, volatility: float, current_price: float) -> float:
    """Blend fit quality and recent dispersion into a bounded heuristic score."""

    raw = 1.0 - (training_error * CONFIDENCE_ERROR_WEIGHT + volatility / current_price)
    if not np.isfinite(raw):
        return MIN_CONFIDENCE
    return float(np.clip(raw, MIN_CONFIDENCE, MAX_CONFIDENCE))


class Forecaster:
    """Roll a trained network forward over a horizon of calendar days.

    Each step feeds the network's own previous output back into the price
    window. The indicator block stays fixed at the values computed for the
    last real observation for the whole horizon.
    """

    def __init__(self, extractor: FeatureExtractor | None = None) -> None:
        self.extractor = extractor or FeatureExtractor()

    def forecast(
        self,
        model: Model,
        history: Sequence[PricePoint],
        horizon_days: int,
    ) -> PredictionResult:
        if horizon_days < 1:
            raise ValueError("horizon_days must be at least 1.")
        prices = validate_history(history)
        if len(prices) < model.window_length:
            raise InsufficientDataError(
                f"Need at least {model.window_length} data points for prediction.",
                required=model.window_length,
                available=len(prices),
            )

        normalizer = Normalizer(model.normalization)
        window = list(normalizer.transform(prices[-model.window_length :]))
        indicators = self.extractor.extract_scaled(history)[-1]
        last_date = history[-1].calendar_date

        future_prices: list[float] = []
        future_dates = []
        for step in range(horizon_days):
            inputs = np.concatenate([window[-model.window_length :], indicators])
            predicted_normalized = float(model.network.predict(inputs)[0])
            predicted = max(MIN_FORECAST_PRICE, float(normalizer.inverse_transform(predicted_normalized)))
            future_prices.append(predicted)
            future_dates.append(last_date + timedelta(days=step + 1))
            window.append(predicted_normalized)

        current_price = float(prices[-1])
        confidence = confidence_score(
            model.training_error, recent_volatility(prices), current_price
        )
        LOGGER.debug(
            "Forecast %s steps from %.4f; first step %.4f (confidence %.3f)",
            horizon_days,
            current_price,
            future_prices[0],
            confidence,
        )
        return PredictionResult(
            current_price=current_price,
            predicted_price=future_prices[0],
            future_prices=tuple(future_prices),
            future_dates=tuple(future_dates),
            confidence=confidence,
            training_error=model.training_error,
            iterations=model.iterations,
        )


__all__ = [
    "Forecaster",
    "MAX_CONFIDENCE",
    "MIN_CONFIDENCE",
    "MIN_FORECAST_PRICE",
    "confidence_score",
    "recent_volatility",
]
