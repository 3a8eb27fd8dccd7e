"""Sample construction and the epoch-based online training loop."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from ..exceptions import InsufficientDataError, TrainingCancelledError
from ..features import FeatureExtractor
from ..history import PricePoint, validate_history
from ..preprocessing import NormalizationParams, normalize
from .network import NeuralNetwork

LOGGER = logging.getLogger(__name__)

DEFAULT_MIN_SAMPLES = 10


class CancellationToken:
    """Cooperative cancellation flag checked by the trainer between epochs."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class TrainingSample:
    """A single supervised example: price window plus indicators, next price."""

    input: np.ndarray
    target: np.ndarray


@dataclass(frozen=True)
class TrainingReport:
    """Outcome of a training run."""

    training_error: float
    iterations: int
    converged: bool = False
    error_history: tuple[float, ...] = field(default_factory=tuple)


def build_training_samples(
    history: Sequence[PricePoint],
    window_length: int,
    *,
    min_samples: int = DEFAULT_MIN_SAMPLES,
    extractor: FeatureExtractor | None = None,
) -> tuple[list[TrainingSample], NormalizationParams]:
    """Create one sample per index ``i >= window_length`` of ``history``.

    The input is the ``window_length`` normalised prices preceding ``i``
    followed by the rescaled indicators at ``i``; the target is the
    normalised price at ``i``.
    """

    if window_length < 1:
        raise ValueError("window_length must be at least 1.")
    prices = validate_history(history)
    available = max(0, len(prices) - window_length)
    if available < min_samples:
        raise InsufficientDataError(
            "Not enough data to create training sequences.",
            required=min_samples + window_length,
            available=len(prices),
        )

    normalized, params = normalize(prices)
    indicators = (extractor or FeatureExtractor()).extract_scaled(history)

    samples = [
        TrainingSample(
            input=np.concatenate([normalized[index - window_length : index], indicators[index]]),
            target=normalized[index : index + 1].copy(),
        )
        for index in range(window_length, len(prices))
    ]
    LOGGER.debug("Built %s training samples (window=%s)", len(samples), window_length)
    return samples, params


class Trainer:
    """Drive epoch-wise online SGD over a fixed sample set."""

    def __init__(
        self,
        network: NeuralNetwork,
        *,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
        log_every: int = 100,
    ) -> None:
        self.network = network
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.log_every = max(1, int(log_every))

    def train(
        self,
        samples: Sequence[TrainingSample],
        max_epochs: int = 1000,
        error_threshold: float = 0.001,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> TrainingReport:
        """Train until the epoch MSE drops below ``error_threshold`` or epochs run out."""

        if not samples:
            raise InsufficientDataError("No training samples supplied.", required=1, available=0)
        if max_epochs < 1:
            raise ValueError("max_epochs must be at least 1.")

        LOGGER.info("Starting neural network training with %s samples", len(samples))
        history: list[float] = []
        training_error = float("inf")
        iterations = 0
        converged = False

        for epoch in range(max_epochs):
            if cancel_token is not None and cancel_token.cancelled:
                LOGGER.warning("Training cancelled at epoch %s", epoch)
                raise TrainingCancelledError(epoch)

            total_error = 0.0
            for position in self.rng.permutation(len(samples)):
                sample = samples[position]
                outputs = self.network.train_step(sample.input, sample.target)
                total_error += float(np.sum((sample.target - outputs) ** 2))

            training_error = total_error / len(samples)
            iterations = epoch + 1
            history.append(training_error)

            if epoch % self.log_every == 0:
                LOGGER.debug("Epoch %s: error = %.6f", epoch, training_error)

            if training_error < error_threshold:
                converged = True
                LOGGER.info("Training converged at epoch %s with error %.6f", epoch, training_error)
                break

        LOGGER.info(
            "Training completed. Final error: %.6f, iterations: %s", training_error, iterations
        )
        return TrainingReport(
            training_error=training_error,
            iterations=iterations,
            converged=converged,
            error_history=tuple(history),
        )


__all__ = [
    "CancellationToken",
    "DEFAULT_MIN_SAMPLES",
    "Trainer",
    "TrainingReport",
    "TrainingSample",
    "build_training_samples",
]
