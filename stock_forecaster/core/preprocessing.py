"""Min-max scaling of price series into the unit interval."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

FLAT_SERIES_VALUE = 0.5


@dataclass(frozen=True)
class NormalizationParams:
    """Scale used to map prices into ``[0, 1]`` and back."""

    min: float
    max: float

    @property
    def span(self) -> float:
        return self.max - self.min

    @property
    def is_degenerate(self) -> bool:
        return self.max == self.min

    def to_dict(self) -> dict[str, float]:
        return {"min": self.min, "max": self.max}


def normalize(series: Sequence[float] | np.ndarray) -> tuple[np.ndarray, NormalizationParams]:
    """Scale ``series`` by its own minimum and maximum.

    A flat series has no usable range, so every value maps to exactly ``0.5``.
    """

    values = np.asarray(series, dtype=float)
    if values.size == 0:
        raise ValueError("Cannot normalise an empty series.")
    params = NormalizationParams(min=float(values.min()), max=float(values.max()))
    return _scale(values, params), params


def denormalize(
    value: float | np.ndarray, min_value: float, max_value: float
) -> float | np.ndarray:
    """Map normalised values back to the original price scale."""

    if isinstance(value, np.ndarray):
        return value * (max_value - min_value) + min_value
    return float(value) * (max_value - min_value) + min_value


def _scale(values: np.ndarray, params: NormalizationParams) -> np.ndarray:
    if params.is_degenerate:
        return np.full(values.shape, FLAT_SERIES_VALUE, dtype=float)
    return (values - params.min) / params.span


class Normalizer:
    """Stateful wrapper that remembers the scale fitted on a series."""

    def __init__(self, params: NormalizationParams | None = None) -> None:
        self.params = params

    def fit_transform(self, series: Sequence[float] | np.ndarray) -> np.ndarray:
        normalized, self.params = normalize(series)
        return normalized

    def transform(self, series: Sequence[float] | np.ndarray) -> np.ndarray:
        """Scale ``series`` with the stored parameters instead of its own range."""

        if self.params is None:
            raise RuntimeError("Normalizer has not been fitted yet.")
        return _scale(np.asarray(series, dtype=float), self.params)

    def inverse_transform(self, value):
        if self.params is None:
            raise RuntimeError("Normalizer has not been fitted yet.")
        return denormalize(value, self.params.min, self.params.max)


__all__ = [
    "FLAT_SERIES_VALUE",
    "NormalizationParams",
    "Normalizer",
    "denormalize",
    "normalize",
]
