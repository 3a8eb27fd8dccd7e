"""Modeling package exposing the network, trainer and forecaster."""

from .engine import PredictionEngine, forecast, train_model
from .forecaster import Forecaster, confidence_score, recent_volatility
from .network import Activation, Layer, NeuralNetwork, Neuron
from .prediction_result import Model, PredictionResult
from .trainer import (
    CancellationToken,
    Trainer,
    TrainingReport,
    TrainingSample,
    build_training_samples,
)

__all__ = [
    "Activation",
    "CancellationToken",
    "Forecaster",
    "Layer",
    "Model",
    "NeuralNetwork",
    "Neuron",
    "PredictionEngine",
    "PredictionResult",
    "Trainer",
    "TrainingReport",
    "TrainingSample",
    "build_training_samples",
    "confidence_score",
    "forecast",
    "recent_volatility",
    "train_model",
]
