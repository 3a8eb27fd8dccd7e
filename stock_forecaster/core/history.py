"""Price history records and validation helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from .exceptions import InvalidHistoryError


@dataclass(frozen=True)
class PricePoint:
    """A single observation of a time-ordered price series."""

    date: date | datetime | str
    price: float
    open: float | None = None
    high: float | None = None
    low: float | None = None
    volume: float | None = None

    @property
    def calendar_date(self) -> date:
        """Return the calendar day this observation belongs to."""

        return as_calendar_date(self.date)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "PricePoint":
        """Build a point from a loosely typed mapping (API or CSV rows)."""

        def _optional(key: str) -> float | None:
            value = payload.get(key)
            if value is None or value == "":
                return None
            try:
                return float(value)
            except (TypeError, ValueError):
                return None

        price = payload.get("price", payload.get("close"))
        if price is None or "date" not in payload:
            raise InvalidHistoryError("Price points need both 'date' and 'price' values.")
        try:
            price = float(price)
        except (TypeError, ValueError) as exc:
            raise InvalidHistoryError(f"Price {price!r} is not numeric.") from exc
        return cls(
            date=payload["date"],
            price=price,
            open=_optional("open"),
            high=_optional("high"),
            low=_optional("low"),
            volume=_optional("volume"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.calendar_date.isoformat(),
            "price": self.price,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "volume": self.volume,
        }


def as_calendar_date(value: date | datetime | str) -> date:
    """Coerce supported date representations to a :class:`datetime.date`."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    timestamp = pd.Timestamp(value)
    if pd.isna(timestamp):
        raise InvalidHistoryError(f"Unable to parse date value {value!r}.")
    return timestamp.date()


def validate_history(history: Sequence[PricePoint]) -> np.ndarray:
    """Return the closing prices as floats after rejecting unusable values."""

    prices = np.empty(len(history), dtype=float)
    for index, point in enumerate(history):
        try:
            price = float(point.price)
        except (TypeError, ValueError) as exc:
            raise InvalidHistoryError(
                f"Price at index {index} is not numeric: {point.price!r}.", index=index
            ) from exc
        if not math.isfinite(price) or price <= 0:
            raise InvalidHistoryError(
                f"Price at index {index} must be positive and finite, got {price}.",
                index=index,
            )
        prices[index] = price
    return prices


def extract_volumes(history: Sequence[PricePoint]) -> np.ndarray:
    """Return volumes aligned with ``history``; missing values become zero."""

    volumes = pd.to_numeric(
        pd.Series([point.volume for point in history], dtype="object"), errors="coerce"
    )
    return volumes.fillna(0.0).to_numpy(dtype=float)


def history_from_frame(frame: pd.DataFrame) -> list[PricePoint]:
    """Convert a ``Date``/``Close``/``Volume`` dataframe into price points."""

    if frame.empty:
        return []
    if "Date" not in frame.columns or "Close" not in frame.columns:
        raise ValueError("Expected 'Date' and 'Close' columns in price data.")

    df = frame.copy()
    df["Date"] = pd.to_datetime(df["Date"], errors="coerce")
    df = df.dropna(subset=["Date", "Close"]).sort_values("Date").reset_index(drop=True)

    def _value(row: pd.Series, column: str) -> float | None:
        if column not in row.index or pd.isna(row[column]):
            return None
        return float(row[column])

    return [
        PricePoint(
            date=row["Date"].to_pydatetime(),
            price=float(row["Close"]),
            open=_value(row, "Open"),
            high=_value(row, "High"),
            low=_value(row, "Low"),
            volume=_value(row, "Volume"),
        )
        for _, row in df.iterrows()
    ]


def coerce_history(points: Iterable[PricePoint | Mapping[str, Any]]) -> list[PricePoint]:
    """Accept price points or mappings and return a list of :class:`PricePoint`."""

    return [
        point if isinstance(point, PricePoint) else PricePoint.from_mapping(point)
        for point in points
    ]


__all__ = [
    "PricePoint",
    "as_calendar_date",
    "coerce_history",
    "extract_volumes",
    "history_from_frame",
    "validate_history",
]
