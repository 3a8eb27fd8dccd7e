"""Neural-network price forecasting toolkit."""

from stock_forecaster.core import (
    ForecasterConfig,
    InsufficientDataError,
    InvalidHistoryError,
    Model,
    PredictionEngine,
    PredictionResult,
    PricePoint,
    build_config,
    forecast,
    load_environment,
    train_model,
)
from stock_forecaster.app import StockForecasterApplication

__all__ = [
    "ForecasterConfig",
    "InsufficientDataError",
    "InvalidHistoryError",
    "Model",
    "PredictionEngine",
    "PredictionResult",
    "PricePoint",
    "StockForecasterApplication",
    "build_config",
    "forecast",
    "load_environment",
    "train_model",
]
