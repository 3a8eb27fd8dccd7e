"""Core analytical components for the stock forecaster."""

from stock_forecaster.core.exceptions import (
    ForecasterError,
    InsufficientDataError,
    InvalidHistoryError,
    TrainingCancelledError,
)
from stock_forecaster.core.history import PricePoint, coerce_history, history_from_frame
from stock_forecaster.core.features import FEATURE_NAMES, FeatureExtractor, rescale_features
from stock_forecaster.core.preprocessing import (
    NormalizationParams,
    Normalizer,
    denormalize,
    normalize,
)
from stock_forecaster.core.config import ForecasterConfig, build_config, load_environment
from stock_forecaster.core.modeling import (
    CancellationToken,
    Forecaster,
    Model,
    NeuralNetwork,
    PredictionEngine,
    PredictionResult,
    Trainer,
    forecast,
    train_model,
)

__all__ = [
    "CancellationToken",
    "FEATURE_NAMES",
    "FeatureExtractor",
    "Forecaster",
    "ForecasterConfig",
    "ForecasterError",
    "InsufficientDataError",
    "InvalidHistoryError",
    "Model",
    "NeuralNetwork",
    "NormalizationParams",
    "Normalizer",
    "PredictionEngine",
    "PredictionResult",
    "PricePoint",
    "Trainer",
    "TrainingCancelledError",
    "build_config",
    "coerce_history",
    "denormalize",
    "forecast",
    "history_from_frame",
    "load_environment",
    "normalize",
    "rescale_features",
    "train_model",
]
