from __future__ import annotations

import numpy as np
import pytest

from fatigue.core import InterpolationMethod, NDInterpolation

pytestmark = pytest.mark.benchmark(group="interpolation")

_GRID = np.array(
    [[x, y, z] for x in range(4) for y in range(4) for z in range(4)],
    dtype=float,
)


def _interpolator(method: InterpolationMethod, *, workers: int) -> NDInterpolation:
    interpolator = NDInterpolation(method, workers=workers)
    weights = np.array([1.5, -2.0, 0.25])
    for row in _GRID:
        interpolator.add_point(row, float(3.0 + row @ weights))
    return interpolator


def _targets(count: int) -> np.ndarray:
    return np.random.default_rng(7).uniform(0.0, 3.0, size=(count, 3))


@pytest.mark.parametrize("workers", [1, 4])
def test_linear_large_batch(benchmark: pytest.BenchmarkFixture, workers: int) -> None:
    interpolator = _interpolator(InterpolationMethod.LINEAR, workers=workers)
    targets = _targets(100_000)

    values = benchmark(interpolator.interpolate, targets)

    expected = 3.0 + targets @ np.array([1.5, -2.0, 0.25])
    np.testing.assert_allclose(values, expected, atol=1e-6)


def test_nearest_neighbour_batch(benchmark: pytest.BenchmarkFixture) -> None:
    interpolator = _interpolator(InterpolationMethod.NEAREST_NEIGHBOR, workers=4)
    targets = _targets(20_000)

    values = benchmark(interpolator.interpolate, targets)

    assert values.shape == (20_000,)
