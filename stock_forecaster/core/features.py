"""Technical indicator features derived from a price/volume history."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np
import pandas as pd

from .history import PricePoint, extract_volumes, validate_history

LOGGER = logging.getLogger(__name__)

SMA_WINDOWS: tuple[int, ...] = (5, 10, 20)
VOLATILITY_WINDOW = 10
MOMENTUM_LAG = 5
VOLUME_WINDOW = 10

FEATURE_NAMES: tuple[str, ...] = (
    "Price_SMA_5_Ratio",
    "Price_SMA_10_Ratio",
    "Price_SMA_20_Ratio",
    "Volatility_10",
    "Momentum_5",
    "Volume_Ratio_10",
)
FEATURE_COUNT = len(FEATURE_NAMES)


def compute_indicator_frame(prices: Sequence[float], volumes: Sequence[float] | None = None) -> pd.DataFrame:
    """Return one row of indicators per observation.

    Moving averages fall back to the observation's own price until a full
    window is available, so early ratios are exactly ``1.0``. Volatility is
    the population standard deviation of the last ten prices relative to the
    current price and momentum is the five-step rate of change; both are zero
    until their window is filled. The volume ratio compares the current
    volume with the mean of up to the last ten volumes and is ``1.0`` whenever
    volume is missing or zero.
    """

    close = pd.Series(np.asarray(prices, dtype=float))
    if volumes is None:
        volume = pd.Series(np.zeros(len(close)))
    else:
        volume = pd.Series(np.asarray(volumes, dtype=float)).fillna(0.0)
    if len(volume) != len(close):
        raise ValueError("prices and volumes must have the same length.")

    frame = pd.DataFrame(index=close.index)
    for window, name in zip(SMA_WINDOWS, FEATURE_NAMES[:3]):
        sma = close.rolling(window=window).mean().fillna(close)
        frame[name] = close / sma

    volatility = close.rolling(window=VOLATILITY_WINDOW).std(ddof=0)
    frame["Volatility_10"] = (volatility / close).fillna(0.0)

    lagged = close.shift(MOMENTUM_LAG)
    frame["Momentum_5"] = ((close - lagged) / lagged).fillna(0.0)

    avg_volume = volume.rolling(window=VOLUME_WINDOW, min_periods=1).mean()
    ratio = (volume / avg_volume).where(volume > 0, 1.0)
    frame["Volume_Ratio_10"] = ratio.fillna(1.0)

    return frame


class FeatureExtractor:
    """Derive the fixed-width indicator vector at every index of a history."""

    feature_names = FEATURE_NAMES

    def extract(self, history: Sequence[PricePoint]) -> np.ndarray:
        """Return an ``(n, 6)`` array of raw indicator values."""

        prices = validate_history(history)
        volumes = extract_volumes(history)
        frame = compute_indicator_frame(prices, volumes)
        LOGGER.debug("Computed %s indicator rows", len(frame.index))
        return frame.to_numpy(dtype=float)

    def extract_scaled(self, history: Sequence[PricePoint]) -> np.ndarray:
        """Return indicator rows rescaled into ``[0, 1]`` for network input."""

        return rescale_features(self.extract(history))


def rescale_features(values: np.ndarray | Sequence[float]) -> np.ndarray:
    """Map indicator values into the unit interval with ``clip((v + 1) / 2, 0, 1)``."""

    return np.clip((np.asarray(values, dtype=float) + 1.0) / 2.0, 0.0, 1.0)


__all__ = [
    "FEATURE_COUNT",
    "FEATURE_NAMES",
    "FeatureExtractor",
    "compute_indicator_frame",
    "rescale_features",
]
