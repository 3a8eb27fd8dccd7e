"""Twelve Data market-data client with caching and credit-aware throttling."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Iterable, Mapping

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..core.history import PricePoint
from .base import (
    Clock,
    ProviderError,
    ProviderResponseError,
    Sleeper,
    _AsyncRateLimiter,
    _CreditWindow,
    _TTLCache,
    filter_valid_points,
)

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..core.config import ForecasterConfig

LOGGER = logging.getLogger(__name__)

MAX_QUOTE_SYMBOLS = 5
TIME_SERIES_COST = 1
QUOTE_COST = 1


def _parse_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class RecordModel(BaseModel):
    """Base class for structured provider payloads."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TimeSeriesValue(RecordModel):
    """One bar of a ``/time_series`` response; numbers arrive as strings."""

    datetime: str
    open: float | None = None
    high: float | None = None
    low: float | None = None
    close: float | None = None
    volume: float | None = None

    @field_validator("open", "high", "low", "close", "volume", mode="before")
    @classmethod
    def _coerce_number(cls, value: Any) -> float | None:
        return _parse_float(value)

    def to_price_point(self) -> PricePoint:
        return PricePoint(
            date=self.datetime,
            price=self.close if self.close is not None else float("nan"),
            open=self.open,
            high=self.high,
            low=self.low,
            volume=self.volume or 0.0,
        )


class Quote(RecordModel):
    """Latest quote summary for a symbol."""

    symbol: str
    name: str | None = None
    price: float | None = Field(default=None, alias="close")
    change: float = 0.0
    change_percent: float = Field(default=0.0, alias="percent_change")
    volume: float = 0.0

    @model_validator(mode="after")
    def _default_name(self) -> "Quote":
        if not self.name:
            self.name = self.symbol
        return self

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> float | None:
        return _parse_float(value)

    @field_validator("change", "change_percent", "volume", mode="before")
    @classmethod
    def _coerce_zero(cls, value: Any) -> float:
        parsed = _parse_float(value)
        return parsed if parsed is not None else 0.0


class TwelveDataClient:
    """Explicitly owned client for the Twelve Data REST API.

    The client keeps its own response cache, enforces a minimum interval
    between requests and spends request credits against a rolling
    one-minute quota, waiting for credits to free up rather than failing.
    Close it with :meth:`aclose` or use it as an async context manager.
    """

    name = "twelve_data"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.twelvedata.com",
        interval: str = "5min",
        output_size: int = 100,
        cache_ttl: float = 300.0,
        min_request_interval: float = 1.2,
        credits_per_minute: int = 7,
        client: httpx.AsyncClient | None = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        if not api_key:
            raise ProviderError("A Twelve Data API key is required.")
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.interval = interval
        self.output_size = int(output_size)
        self._client = client
        self._client_owner = client is None
        self._cache = _TTLCache(cache_ttl, clock=clock)
        self._rate_limiter = _AsyncRateLimiter(min_request_interval, clock=clock, sleep=sleep)
        self._credits = _CreditWindow(credits_per_minute, clock=clock, sleep=sleep)

    @classmethod
    def from_config(cls, config: "ForecasterConfig", **kwargs: Any) -> "TwelveDataClient":
        return cls(
            config.api_key or "",
            base_url=config.base_url,
            interval=config.interval,
            output_size=config.output_size,
            cache_ttl=config.cache_ttl,
            min_request_interval=config.min_request_interval,
            credits_per_minute=config.credits_per_minute,
            **kwargs,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=30.0)
        return self._client

    async def fetch_price_series(self, symbol: str) -> list[PricePoint]:
        """Return the symbol's price series in ascending date order."""

        symbol = symbol.strip().upper()
        LOGGER.info("Fetching data for %s", symbol)
        payload = await self._request(
            "time_series",
            {"symbol": symbol, "interval": self.interval, "outputsize": self.output_size},
            cost=TIME_SERIES_COST,
        )
        raw_values = payload.get("values") if isinstance(payload, Mapping) else None
        if not isinstance(raw_values, list):
            raise ProviderResponseError("Invalid data format received from API")

        try:
            bars = [TimeSeriesValue.model_validate(item) for item in raw_values]
        except ValidationError as exc:
            raise ProviderResponseError(f"Invalid data format received from API: {exc}") from exc

        # The API lists the newest bar first.
        points = filter_valid_points([bar.to_price_point() for bar in reversed(bars)])
        if not points:
            raise ProviderResponseError(f"No valid data points received for {symbol}")
        LOGGER.info("Successfully loaded %s data points for %s", len(points), symbol)
        return points

    async def fetch_quotes(self, symbols: Iterable[str]) -> list[Quote]:
        """Fetch quotes for up to five distinct symbols in a single request.

        Failures are logged and produce an empty list.
        """

        unique = list(dict.fromkeys(item.strip().upper() for item in symbols if item.strip()))
        limited = unique[:MAX_QUOTE_SYMBOLS]
        if not limited:
            return []
        try:
            payload = await self._request("quote", {"symbol": ",".join(limited)}, cost=QUOTE_COST)
            # A single symbol yields one object, several yield a mapping keyed by symbol.
            if isinstance(payload, list):
                items = payload
            elif isinstance(payload, Mapping) and "symbol" in payload:
                items = [payload]
            elif isinstance(payload, Mapping):
                items = list(payload.values())
            else:
                items = []
            return [Quote.model_validate(item) for item in items]
        except (ProviderError, ValidationError, httpx.HTTPError) as exc:
            LOGGER.error("Error fetching quotes for %s: %s", limited, exc)
            return []

    def clear_cache(self) -> None:
        self._cache.clear()
        LOGGER.info("API cache cleared")

    def cache_stats(self) -> dict[str, Any]:
        return {
            "cache_size": len(self._cache),
            "credits_used_this_minute": self._credits.used,
            "seconds_until_reset": self._credits.seconds_until_reset(),
        }

    async def aclose(self) -> None:
        if self._client is not None and self._client_owner:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "TwelveDataClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _cache_key(self, path: str, params: Mapping[str, Any]) -> str:
        query = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return f"{path}?{query}"

    async def _request(self, path: str, params: Mapping[str, Any], *, cost: int) -> Any:
        cache_key = self._cache_key(path, params)
        cached = await self._cache.get(cache_key)
        if cached is not None:
            LOGGER.debug("Using cached data for: %s", path)
            return cached

        await self._credits.spend(cost)
        await self._rate_limiter.acquire()
        LOGGER.debug(
            "Making API request: %s (credits used this minute: %s)", path, self._credits.used
        )

        try:
            response = await self.client.get(
                f"{self.base_url}/{path}", params={**params, "apikey": self._api_key}
            )
        except httpx.HTTPError as exc:
            raise ProviderResponseError(f"API request failed: {exc}") from exc
        if response.is_error:
            raise ProviderResponseError(
                f"API request failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderResponseError("API returned a non-JSON response") from exc
        if isinstance(payload, Mapping) and payload.get("status") == "error":
            raise ProviderResponseError(
                str(payload.get("message") or "API returned an error"),
                status_code=_parse_int(payload.get("code")),
            )

        await self._cache.set(cache_key, payload)
        return payload


def _parse_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


__all__ = ["Quote", "TimeSeriesValue", "TwelveDataClient"]
