from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ..preprocessing import NormalizationParams
from .network import NeuralNetwork


@dataclass(frozen=True)
class Model:
    """A trained network bundled with the scale and window it was trained on."""

    network: NeuralNetwork
    normalization: NormalizationParams
    window_length: int
    training_error: float
    iterations: int
    learning_rate: float = 0.01
    seed: int | None = None
    error_history: tuple[float, ...] = field(default_factory=tuple, repr=False)

    @property
    def architecture(self) -> tuple[int, ...]:
        return self.network.architecture

    def summary(self) -> dict[str, Any]:
        """Return model metadata without the network parameters."""

        return {
            "architecture": list(self.architecture),
            "normalization": self.normalization.to_dict(),
            "window_length": self.window_length,
            "training_error": self.training_error,
            "iterations": self.iterations,
            "learning_rate": self.learning_rate,
            "seed": self.seed,
        }


@dataclass(frozen=True)
class PredictionResult:
    """Container for an N-step forecast and its metadata."""

    current_price: float
    predicted_price: float
    future_prices: tuple[float, ...]
    future_dates: tuple[date, ...]
    confidence: float
    training_error: float
    iterations: int

    def to_dict(self) -> dict[str, Any]:
        """Return a plain dictionary representation suitable for serialization."""

        return {
            "current_price": self.current_price,
            "predicted_price": self.predicted_price,
            "future_prices": list(self.future_prices),
            "future_dates": [value.isoformat() for value in self.future_dates],
            "confidence": self.confidence,
            "training_error": self.training_error,
            "iterations": self.iterations,
        }


__all__ = ["Model", "PredictionResult"]
