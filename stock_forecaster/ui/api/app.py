"""FastAPI application exposing the train-and-forecast operations."""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from stock_forecaster.app import StockForecasterApplication
from stock_forecaster.core import ForecasterError, PricePoint
from stock_forecaster.providers import ProviderError


class PricePointPayload(BaseModel):
    """A single observation supplied by the caller."""

    date: dt.date
    price: float
    open: float | None = None
    high: float | None = None
    low: float | None = None
    volume: float | None = None

    def to_price_point(self) -> PricePoint:
        return PricePoint(**self.model_dump())


class ForecastRequest(BaseModel):
    """Payload used to train on a caller-supplied history and forecast from it."""

    history: list[PricePointPayload] = Field(
        ..., description="Price observations in ascending date order."
    )
    horizon_days: int | None = Field(
        default=None,
        ge=1,
        le=365,
        description="Number of calendar days to forecast.",
    )
    symbol: str | None = Field(default=None, description="Optional label echoed in the response.")
    seed: int | None = Field(default=None, description="Seed for a reproducible training run.")
    max_epochs: int | None = Field(default=None, ge=1, le=100_000)


class ForecastResponse(BaseModel):
    """Structured forecast produced by the prediction engine."""

    current_price: float
    predicted_price: float
    future_prices: list[float]
    future_dates: list[str]
    confidence: float = Field(..., ge=0.0, le=1.0)
    training_error: float
    iterations: int


class ForecastEnvelope(BaseModel):
    """Top-level envelope for forecast responses."""

    status: str = Field("ok", description="Outcome of the request.")
    symbol: str | None = None
    points: int
    model: Dict[str, Any]
    prediction: ForecastResponse


def create_app(default_overrides: Dict[str, Any] | None = None) -> FastAPI:
    """Create a configured FastAPI application for the stock forecaster."""

    overrides = dict(default_overrides or {})
    app = FastAPI(title="Stock Forecaster API", version="1.0.0")
    app.state.application = None

    def _get_application() -> StockForecasterApplication:
        application = app.state.application
        if application is None:
            application = StockForecasterApplication.from_environment(**overrides)
            app.state.application = application
        return application

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        application: StockForecasterApplication | None = app.state.application
        if application is not None:
            await application.aclose()

    @app.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/forecast", response_model=ForecastEnvelope)
    async def forecast_history(request: ForecastRequest) -> Dict[str, Any]:
        application = _get_application()
        history = [point.to_price_point() for point in request.history]
        try:
            result = await run_in_threadpool(
                application.forecast_history,
                history,
                request.horizon_days,
                symbol=request.symbol,
                seed=request.seed,
                max_epochs=request.max_epochs,
            )
        except ForecasterError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"status": result.status, **result.payload}

    @app.get("/forecast/{symbol}", response_model=ForecastEnvelope)
    async def forecast_symbol(
        symbol: str,
        horizon_days: int | None = Query(None, ge=1, le=365, description="Days to forecast."),
    ) -> Dict[str, Any]:
        application = _get_application()
        try:
            result = await application.forecast(symbol, horizon_days)
        except ForecasterError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except ProviderError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return {"status": result.status, **result.payload}

    return app


__all__ = ["ForecastRequest", "ForecastResponse", "create_app"]
