"""Market-data providers feeding price series into the forecaster."""

from .base import (
    PriceSeriesSource,
    ProviderError,
    ProviderQuotaError,
    ProviderResponseError,
    filter_valid_points,
)
from .twelvedata import Quote, TimeSeriesValue, TwelveDataClient

__all__ = [
    "PriceSeriesSource",
    "ProviderError",
    "ProviderQuotaError",
    "ProviderResponseError",
    "Quote",
    "TimeSeriesValue",
    "TwelveDataClient",
    "filter_valid_points",
]
