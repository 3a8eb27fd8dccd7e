"""Stateless train/forecast entry points of the prediction engine."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

import numpy as np

from ..config import ForecasterConfig
from ..history import PricePoint
from .forecaster import Forecaster
from .network import NeuralNetwork
from .prediction_result import Model, PredictionResult
from .trainer import CancellationToken, Trainer, build_training_samples

LOGGER = logging.getLogger(__name__)


def train_model(
    history: Sequence[PricePoint],
    config: ForecasterConfig | None = None,
    *,
    seed: int | None = None,
    cancel_token: CancellationToken | None = None,
) -> Model:
    """Train a fresh network on ``history`` and return an immutable :class:`Model`.

    ``seed`` (or ``config.seed``) drives both weight initialisation and the
    per-epoch shuffle; pin it for reproducible runs.
    """

    config = config or ForecasterConfig()
    seed = config.seed if seed is None else seed

    samples, normalization = build_training_samples(
        history,
        config.window_length,
        min_samples=config.min_training_samples,
    )

    rng = np.random.default_rng(seed)
    network = NeuralNetwork(config.architecture, config.learning_rate, rng=rng)
    trainer = Trainer(network, rng=rng, log_every=config.log_every)
    report = trainer.train(
        samples,
        max_epochs=config.max_epochs,
        error_threshold=config.error_threshold,
        cancel_token=cancel_token,
    )
    network.lock()

    return Model(
        network=network,
        normalization=normalization,
        window_length=config.window_length,
        training_error=report.training_error,
        iterations=report.iterations,
        learning_rate=config.learning_rate,
        seed=seed,
        error_history=report.error_history,
    )


def forecast(
    model: Model,
    history: Sequence[PricePoint],
    horizon_days: int,
) -> PredictionResult:
    """Produce a ``horizon_days`` forecast from ``model`` and the real ``history``."""

    return Forecaster().forecast(model, history, horizon_days)


class PredictionEngine:
    """Configured facade over :func:`train_model` and :func:`forecast`."""

    def __init__(self, config: ForecasterConfig | None = None) -> None:
        self.config = config or ForecasterConfig()
        self.forecaster = Forecaster()

    def train_model(
        self,
        history: Sequence[PricePoint],
        *,
        seed: int | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> Model:
        LOGGER.info("Training model on %s price points", len(history))
        return train_model(history, self.config, seed=seed, cancel_token=cancel_token)

    async def train_model_async(
        self,
        history: Sequence[PricePoint],
        *,
        seed: int | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> Model:
        """Run training on a worker thread so the event loop stays responsive."""

        return await asyncio.to_thread(
            self.train_model, history, seed=seed, cancel_token=cancel_token
        )

    def forecast(
        self,
        model: Model,
        history: Sequence[PricePoint],
        horizon_days: int | None = None,
    ) -> PredictionResult:
        horizon = self.config.forecast_horizon if horizon_days is None else horizon_days
        return self.forecaster.forecast(model, history, horizon)


__all__ = ["PredictionEngine", "forecast", "train_model"]
