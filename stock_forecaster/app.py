"""Top-level application orchestration for the stock forecaster."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Sequence

from stock_forecaster.core import (
    ForecasterConfig,
    Model,
    PredictionEngine,
    PricePoint,
    build_config,
    load_environment,
)
from stock_forecaster.providers import PriceSeriesSource, TwelveDataClient

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RunResult:
    """Wrapper used by the application to provide consistent responses."""

    status: str
    payload: dict[str, Any]


class StockForecasterApplication:
    """Coordinate the market-data source and the prediction engine.

    The application keeps no trained model between calls; every forecast
    trains a fresh model on the freshly fetched history.
    """

    def __init__(self, config: ForecasterConfig, source: PriceSeriesSource | None = None) -> None:
        self.config = config
        self.engine = PredictionEngine(config)
        self._source = source

    @classmethod
    def from_environment(cls, **overrides: Any) -> "StockForecasterApplication":
        """Create an application instance using environment variables and overrides."""

        load_environment()
        config = build_config(**overrides)
        LOGGER.debug("Initialised configuration for default symbol %s", config.default_symbol)
        return cls(config)

    @property
    def source(self) -> PriceSeriesSource:
        if self._source is None:
            self._source = TwelveDataClient.from_config(self.config)
        return self._source

    async def fetch_history(self, symbol: str | None = None) -> list[PricePoint]:
        return await self.source.fetch_price_series(symbol or self.config.default_symbol)

    async def train(self, symbol: str | None = None) -> tuple[Model, list[PricePoint]]:
        history = await self.fetch_history(symbol)
        model = await self.engine.train_model_async(history)
        return model, history

    async def forecast(
        self,
        symbol: str | None = None,
        horizon_days: int | None = None,
    ) -> RunResult:
        """Fetch history for ``symbol``, train a model and forecast ``horizon_days`` ahead."""

        ticker = (symbol or self.config.default_symbol).upper()
        model, history = await self.train(ticker)
        return self.forecast_history(history, horizon_days, symbol=ticker, model=model)

    def forecast_history(
        self,
        history: Sequence[PricePoint],
        horizon_days: int | None = None,
        *,
        symbol: str | None = None,
        model: Model | None = None,
        seed: int | None = None,
        max_epochs: int | None = None,
    ) -> RunResult:
        """Train on (or reuse a model for) ``history`` and forecast from it.

        ``seed`` and ``max_epochs`` apply to this call only.
        """

        if model is None:
            engine = self.engine
            if max_epochs is not None:
                engine = PredictionEngine(replace(self.config, max_epochs=max_epochs))
            model = engine.train_model(history, seed=seed)
        result = self.engine.forecast(model, history, horizon_days)
        payload: dict[str, Any] = {
            "symbol": symbol,
            "points": len(history),
            "model": model.summary(),
            "prediction": result.to_dict(),
        }
        return RunResult(status="ok", payload=payload)

    async def aclose(self) -> None:
        closer = getattr(self._source, "aclose", None)
        if closer is not None:
            await closer()


__all__ = ["RunResult", "StockForecasterApplication"]
