from pathlib import Path
import sys

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from stock_forecaster.core.preprocessing import (
    FLAT_SERIES_VALUE,
    NormalizationParams,
    Normalizer,
    denormalize,
    normalize,
)


def test_normalize_maps_extremes_to_unit_interval():
    normalized, params = normalize([10.0, 15.0, 20.0, 12.5])

    np.testing.assert_allclose(normalized, [0.0, 0.5, 1.0, 0.25])
    assert params == NormalizationParams(min=10.0, max=20.0)


def test_denormalize_inverts_normalize():
    prices = np.array([101.5, 99.2, 130.0, 87.3, 110.1])
    normalized, params = normalize(prices)

    restored = denormalize(normalized, params.min, params.max)

    np.testing.assert_allclose(restored, prices)


def test_denormalize_scalar_returns_float():
    value = denormalize(0.25, 100.0, 200.0)

    assert isinstance(value, float)
    assert value == pytest.approx(125.0)


def test_flat_series_maps_to_half_without_division_error():
    normalized, params = normalize([42.0] * 5)

    assert params.is_degenerate
    assert np.all(normalized == FLAT_SERIES_VALUE)
    assert denormalize(0.73, params.min, params.max) == pytest.approx(42.0)


def test_normalize_rejects_empty_series():
    with pytest.raises(ValueError):
        normalize([])


def test_normalizer_transform_reuses_fitted_scale():
    normalizer = Normalizer()
    normalizer.fit_transform([10.0, 20.0])

    scaled = normalizer.transform([15.0, 25.0])

    np.testing.assert_allclose(scaled, [0.5, 1.5])
    assert normalizer.inverse_transform(0.5) == pytest.approx(15.0)


def test_unfitted_normalizer_raises():
    with pytest.raises(RuntimeError):
        Normalizer().transform([1.0, 2.0])
