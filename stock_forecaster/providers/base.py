"""Shared provider utilities: errors, response cache and request throttling."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections import deque
from typing import Any, Awaitable, Callable, MutableMapping, Protocol, Sequence, runtime_checkable

from ..core.history import PricePoint

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]

CREDIT_WINDOW_SECONDS = 60.0


class ProviderError(RuntimeError):
    """Base class for provider related failures."""


class ProviderResponseError(ProviderError):
    """Raised when a provider answers with an error or an unusable payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderQuotaError(ProviderError):
    """Raised when a single request costs more than the per-minute quota allows."""


@runtime_checkable
class PriceSeriesSource(Protocol):
    """Narrow interface the forecasting application needs from a data provider."""

    async def fetch_price_series(self, symbol: str) -> list[PricePoint]: ...


class _TTLCache:
    """Minimal TTL cache for provider responses."""

    def __init__(self, ttl: float, clock: Clock = time.monotonic) -> None:
        self._ttl = ttl
        self._clock = clock
        self._data: MutableMapping[str, tuple[float, Any]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._data.get(key)
            if not entry:
                return None
            expires, value = entry
            if self._clock() >= expires:
                del self._data[key]
                return None
            return value

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            if self._ttl <= 0:
                return
            self._data[key] = (self._clock() + self._ttl, value)

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


class _AsyncRateLimiter:
    """Enforce a minimum interval between consecutive requests."""

    def __init__(self, min_interval: float, clock: Clock = time.monotonic, sleep: Sleeper = asyncio.sleep) -> None:
        self._interval = max(0.0, float(min_interval))
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_call: float | None = None

    async def acquire(self) -> None:
        async with self._lock:
            if self._interval > 0 and self._last_call is not None:
                wait_for = self._interval - (self._clock() - self._last_call)
                if wait_for > 0:
                    await self._sleep(wait_for)
            self._last_call = self._clock()


class _CreditWindow:
    """Rolling per-minute quota on paid request credits."""

    def __init__(
        self,
        limit: int,
        *,
        window: float = CREDIT_WINDOW_SECONDS,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._limit = int(limit)
        self._window = float(window)
        self._clock = clock
        self._sleep = sleep
        self._spent: deque[tuple[float, int]] = deque()
        self._lock = asyncio.Lock()

    def _expire(self, now: float) -> None:
        while self._spent and now - self._spent[0][0] >= self._window:
            self._spent.popleft()

    @property
    def used(self) -> int:
        self._expire(self._clock())
        return sum(cost for _, cost in self._spent)

    def seconds_until_reset(self) -> float:
        now = self._clock()
        self._expire(now)
        if not self._spent:
            return 0.0
        return max(0.0, self._window - (now - self._spent[0][0]))

    async def spend(self, cost: int) -> None:
        if cost > self._limit:
            raise ProviderQuotaError(
                f"Request costs {cost} credits but only {self._limit} are allowed per minute."
            )
        async with self._lock:
            while True:
                now = self._clock()
                self._expire(now)
                used = sum(spent for _, spent in self._spent)
                if used + cost <= self._limit:
                    self._spent.append((now, cost))
                    return
                wait_for = self._window - (now - self._spent[0][0])
                LOGGER.info("Credit limit approaching. Waiting %.1fs before next request", wait_for)
                await self._sleep(max(wait_for, 0.0))


def filter_valid_points(points: Sequence[PricePoint]) -> list[PricePoint]:
    """Drop points with missing, non-finite or non-positive prices."""

    valid: list[PricePoint] = []
    for point in points:
        price = point.price
        if price is None or not math.isfinite(price) or price <= 0:
            continue
        valid.append(point)
    return valid


__all__ = [
    "PriceSeriesSource",
    "ProviderError",
    "ProviderQuotaError",
    "ProviderResponseError",
    "filter_valid_points",
]
