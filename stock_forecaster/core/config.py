"""Configuration utilities for the stock forecaster package."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from typing import Any, Iterable, Optional

from dotenv import load_dotenv

from .features import FEATURE_COUNT

ENV_PREFIX = "STOCK_FORECASTER_"

DEFAULT_WINDOW_LENGTH = 10
DEFAULT_HIDDEN_LAYERS: tuple[int, ...] = (32, 16, 8)
DEFAULT_LEARNING_RATE = 0.01
DEFAULT_MAX_EPOCHS = 2000
DEFAULT_ERROR_THRESHOLD = 0.001
DEFAULT_MIN_TRAINING_SAMPLES = 10
DEFAULT_FORECAST_HORIZON = 5
DEFAULT_LOG_EVERY = 100

DEFAULT_BASE_URL = "https://api.twelvedata.com"
DEFAULT_INTERVAL = "5min"
DEFAULT_OUTPUT_SIZE = 100
DEFAULT_CACHE_TTL = 300.0
DEFAULT_MIN_REQUEST_INTERVAL = 1.2
DEFAULT_CREDITS_PER_MINUTE = 7
DEFAULT_SYMBOL = "AAPL"


def _coerce_hidden_layers(value: Iterable[int] | str | None) -> tuple[int, ...]:
    if value is None:
        return DEFAULT_HIDDEN_LAYERS
    if isinstance(value, str):
        items = [item.strip() for item in value.split(",") if item.strip()]
    else:
        items = list(value)
    try:
        layers = tuple(int(item) for item in items)
    except (TypeError, ValueError) as exc:
        raise ValueError("hidden_layers must be a comma separated list of integers.") from exc
    if any(width <= 0 for width in layers):
        raise ValueError("hidden_layers widths must be positive.")
    return layers


def _coerce_optional_int(value: Any | None) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected an integer, got {value!r}.") from exc


@dataclass
class ForecasterConfig:
    """Runtime configuration for training, forecasting and market data access."""

    window_length: int = DEFAULT_WINDOW_LENGTH
    hidden_layers: tuple[int, ...] = DEFAULT_HIDDEN_LAYERS
    learning_rate: float = DEFAULT_LEARNING_RATE
    max_epochs: int = DEFAULT_MAX_EPOCHS
    error_threshold: float = DEFAULT_ERROR_THRESHOLD
    min_training_samples: int = DEFAULT_MIN_TRAINING_SAMPLES
    forecast_horizon: int = DEFAULT_FORECAST_HORIZON
    seed: Optional[int] = None
    log_every: int = DEFAULT_LOG_EVERY
    default_symbol: str = DEFAULT_SYMBOL
    api_key: Optional[str] = field(default=None, repr=False)
    base_url: str = DEFAULT_BASE_URL
    interval: str = DEFAULT_INTERVAL
    output_size: int = DEFAULT_OUTPUT_SIZE
    cache_ttl: float = DEFAULT_CACHE_TTL
    min_request_interval: float = DEFAULT_MIN_REQUEST_INTERVAL
    credits_per_minute: int = DEFAULT_CREDITS_PER_MINUTE

    def __post_init__(self) -> None:
        self.hidden_layers = _coerce_hidden_layers(self.hidden_layers)
        self.default_symbol = self.default_symbol.strip().upper()
        if self.window_length < 1:
            raise ValueError("window_length must be at least 1.")
        if self.learning_rate <= 0:
            raise ValueError("learning_rate must be positive.")
        if self.max_epochs < 1:
            raise ValueError("max_epochs must be at least 1.")
        if self.error_threshold < 0:
            raise ValueError("error_threshold must not be negative.")
        if self.min_training_samples < 1:
            raise ValueError("min_training_samples must be at least 1.")
        if self.forecast_horizon < 1:
            raise ValueError("forecast_horizon must be at least 1.")
        if self.credits_per_minute < 1:
            raise ValueError("credits_per_minute must be at least 1.")
        if self.cache_ttl < 0 or self.min_request_interval < 0:
            raise ValueError("cache_ttl and min_request_interval must not be negative.")

    @property
    def input_size(self) -> int:
        return self.window_length + FEATURE_COUNT

    @property
    def architecture(self) -> tuple[int, ...]:
        """Layer widths from input to the single output neuron."""

        return (self.input_size, *self.hidden_layers, 1)


def load_environment() -> None:
    """Load environment variables from a ``.env`` file if present."""

    load_dotenv()


_NUMERIC_FIELDS: dict[str, type] = {
    "window_length": int,
    "learning_rate": float,
    "max_epochs": int,
    "error_threshold": float,
    "min_training_samples": int,
    "forecast_horizon": int,
    "log_every": int,
    "output_size": int,
    "cache_ttl": float,
    "min_request_interval": float,
    "credits_per_minute": int,
}


def build_config(**overrides: Any) -> ForecasterConfig:
    """Build a :class:`ForecasterConfig` from overrides and ``STOCK_FORECASTER_*`` variables.

    Explicit, non-``None`` overrides win over the environment; anything left
    unset falls back to the dataclass defaults.
    """

    load_environment()
    known = {item.name for item in fields(ForecasterConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise ValueError(f"Unknown configuration options: {sorted(unknown)}")

    values: dict[str, Any] = {}
    for name in known:
        value = overrides.get(name)
        if value is None:
            value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if value is None and name == "api_key":
            value = os.getenv("TWELVE_DATA_API_KEY")
        if value is None or value == "":
            continue
        caster = _NUMERIC_FIELDS.get(name)
        if caster is not None:
            try:
                value = caster(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"{name} must be a valid {caster.__name__}, got {value!r}.") from exc
        elif name == "seed":
            value = _coerce_optional_int(value)
        values[name] = value
    return ForecasterConfig(**values)


__all__ = [
    "DEFAULT_ERROR_THRESHOLD",
    "DEFAULT_FORECAST_HORIZON",
    "DEFAULT_HIDDEN_LAYERS",
    "DEFAULT_LEARNING_RATE",
    "DEFAULT_MAX_EPOCHS",
    "DEFAULT_WINDOW_LENGTH",
    "ENV_PREFIX",
    "ForecasterConfig",
    "build_config",
    "load_environment",
]
