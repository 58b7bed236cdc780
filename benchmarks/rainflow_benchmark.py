from __future__ import annotations

import numpy as np
import pytest

from fatigue.core import count_cycles, rainflow, reversals

pytestmark = pytest.mark.benchmark(group="rainflow")


def _history(length: int = 100_000) -> np.ndarray:
    return np.random.default_rng(11).uniform(-100.0, 100.0, size=length)


def test_reversal_extraction(benchmark: pytest.BenchmarkFixture) -> None:
    history = _history()

    turning_points = benchmark(reversals, history)

    assert 0 < turning_points.size <= history.size


def test_rainflow_random_history(benchmark: pytest.BenchmarkFixture) -> None:
    history = _history()

    means, ranges = benchmark(rainflow, history)

    assert means.shape == ranges.shape
    assert float(ranges.max()) <= 200.0


def test_cycle_objects(benchmark: pytest.BenchmarkFixture) -> None:
    history = _history(20_000)

    cycles = benchmark(count_cycles, history)

    assert sum(cycle.count for cycle in cycles) > 0
