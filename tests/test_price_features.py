from datetime import date, timedelta
from pathlib import Path
import sys

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from stock_forecaster.core.exceptions import InvalidHistoryError
from stock_forecaster.core.features import (
    FEATURE_NAMES,
    FeatureExtractor,
    compute_indicator_frame,
    rescale_features,
)
from stock_forecaster.core.history import PricePoint


def _history(prices, volumes=None):
    start = date(2024, 1, 1)
    volumes = volumes if volumes is not None else [None] * len(prices)
    return [
        PricePoint(date=start + timedelta(days=i), price=float(p), volume=v)
        for i, (p, v) in enumerate(zip(prices, volumes))
    ]


def test_extractor_returns_six_features_per_index():
    history = _history(range(1, 26))
    features = FeatureExtractor().extract(history)

    assert features.shape == (25, len(FEATURE_NAMES))
    assert len(FEATURE_NAMES) == 6


def test_short_history_ratios_fall_back_to_price():
    features = FeatureExtractor().extract(_history([10.0, 11.0, 12.0, 13.0]))

    np.testing.assert_allclose(features[:, 0:3], 1.0)
    np.testing.assert_allclose(features[:, 3], 0.0)
    np.testing.assert_allclose(features[:, 4], 0.0)
    np.testing.assert_allclose(features[:, 5], 1.0)


def test_moving_average_ratios_use_trailing_windows():
    prices = np.arange(1.0, 26.0)
    frame = compute_indicator_frame(prices)

    assert frame["Price_SMA_5_Ratio"].iloc[4] == pytest.approx(5.0 / 3.0)
    assert frame["Price_SMA_5_Ratio"].iloc[24] == pytest.approx(25.0 / 23.0)
    assert frame["Price_SMA_10_Ratio"].iloc[8] == pytest.approx(1.0)
    assert frame["Price_SMA_10_Ratio"].iloc[9] == pytest.approx(10.0 / 5.5)
    assert frame["Price_SMA_20_Ratio"].iloc[18] == pytest.approx(1.0)
    assert frame["Price_SMA_20_Ratio"].iloc[19] == pytest.approx(20.0 / 10.5)


def test_volatility_is_population_std_over_price():
    prices = np.arange(1.0, 16.0)
    frame = compute_indicator_frame(prices)

    assert frame["Volatility_10"].iloc[8] == 0.0
    expected = np.std(prices[0:10]) / prices[9]
    assert frame["Volatility_10"].iloc[9] == pytest.approx(expected)
    expected_last = np.std(prices[5:15]) / prices[14]
    assert frame["Volatility_10"].iloc[14] == pytest.approx(expected_last)


def test_momentum_is_five_step_rate_of_change():
    prices = np.array([10.0, 11.0, 12.0, 13.0, 14.0, 20.0, 22.0])
    frame = compute_indicator_frame(prices)

    assert frame["Momentum_5"].iloc[4] == 0.0
    assert frame["Momentum_5"].iloc[5] == pytest.approx(1.0)
    assert frame["Momentum_5"].iloc[6] == pytest.approx((22.0 - 11.0) / 11.0)


def test_volume_ratio_uses_available_points_and_defaults_to_one():
    prices = np.full(12, 50.0)
    volumes = np.array([100.0, 200.0, 0.0] + [300.0] * 9)
    frame = compute_indicator_frame(prices, volumes)

    assert frame["Volume_Ratio_10"].iloc[0] == pytest.approx(1.0)
    assert frame["Volume_Ratio_10"].iloc[1] == pytest.approx(200.0 / 150.0)
    assert frame["Volume_Ratio_10"].iloc[2] == 1.0
    window = volumes[2:12]
    assert frame["Volume_Ratio_10"].iloc[11] == pytest.approx(300.0 / window.mean())


def test_missing_volumes_are_treated_as_zero():
    history = _history([10.0, 11.0, 12.0], volumes=[None, 500.0, None])
    features = FeatureExtractor().extract(history)

    assert features[0, 5] == 1.0
    assert features[1, 5] == pytest.approx(500.0 / 250.0)
    assert features[2, 5] == 1.0


def test_rescale_features_clamps_into_unit_interval():
    scaled = rescale_features([-3.0, -1.0, 0.0, 0.5, 1.0, 4.0])

    np.testing.assert_allclose(scaled, [0.0, 0.0, 0.5, 0.75, 1.0, 1.0])


def test_extract_scaled_stays_within_bounds():
    rng = np.random.default_rng(0)
    prices = 100 + np.cumsum(rng.normal(scale=5.0, size=60))
    history = _history(np.abs(prices) + 1.0, volumes=list(rng.integers(0, 10_000, size=60)))
    scaled = FeatureExtractor().extract_scaled(history)

    assert scaled.min() >= 0.0
    assert scaled.max() <= 1.0


@pytest.mark.parametrize("bad_price", [0.0, -5.0, float("nan"), float("inf")])
def test_extractor_rejects_invalid_prices(bad_price):
    history = _history([10.0, bad_price, 12.0])

    with pytest.raises(InvalidHistoryError) as excinfo:
        FeatureExtractor().extract(history)

    assert excinfo.value.index == 1
