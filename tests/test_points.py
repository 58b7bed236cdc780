from __future__ import annotations

import math

import numpy as np
import pytest

from fatigue.core import CalibrationSet, Dataset, DimensionMismatchError, Point
from fatigue.core.points import as_point


def test_points_within_tolerance_compare_equal_and_share_hash() -> None:
    first = Point((1.0, 2.0))
    second = Point((1.0 + 1e-6, 2.0 - 1e-6))

    assert first == second
    assert hash(first) == hash(second)


def test_points_outside_tolerance_differ() -> None:
    assert Point((1.0,)) != Point((1.0 + 1e-3,))
    assert Point((1.0,)) != Point((1.0, 0.0))


def test_point_rejects_non_finite_coordinates() -> None:
    with pytest.raises(ValueError):
        Point((1.0, math.nan))
    with pytest.raises(ValueError):
        Point((math.inf,))


def test_point_rejects_non_positive_tolerance() -> None:
    with pytest.raises(ValueError):
        Point((1.0,), tolerance=0.0)


def test_as_point_accepts_sequences_and_arrays() -> None:
    point = as_point(np.array([1, 2, 3]), source="unit.usf")

    assert point.coordinates == (1.0, 2.0, 3.0)
    assert point.source == "unit.usf"
    assert as_point([4.0]).coordinates == (4.0,)
    with pytest.raises(ValueError):
        as_point([[1.0, 2.0], [3.0, 4.0]])


def test_dataset_overwrites_value_within_tolerance() -> None:
    dataset = Dataset(tolerance=1e-5)
    dataset.add((1.0,), 10.0)
    dataset.add((1.0 + 1e-6,), 20.0)

    assert len(dataset) == 1
    assert dataset[(1.0,)] == 20.0
    stored = next(iter(dataset))
    assert stored.coordinates == (1.0,)


def test_dataset_keeps_distinct_points() -> None:
    dataset = Dataset([((0.0,), 1.0), ((1.0,), 2.0)])

    assert len(dataset) == 2
    assert (0.0,) in dataset
    assert (0.5,) not in dataset
    assert "not a point" not in dataset


def test_dataset_freeze_is_read_only_snapshot() -> None:
    dataset = Dataset([((0.0, 0.0), 1.0), ((1.0, 0.0), 2.0)])
    frozen = dataset.freeze()
    dataset.add((2.0, 0.0), 3.0)

    assert len(frozen) == 2
    assert frozen.dimension == 2
    assert frozen.values.tolist() == [1.0, 2.0]
    with pytest.raises(ValueError):
        frozen.coordinates[0, 0] = 5.0


def test_empty_calibration_set_has_no_dimension() -> None:
    frozen = Dataset().freeze()

    assert len(frozen) == 0
    assert frozen.dimension is None


def test_calibration_set_rejects_mixed_dimensions() -> None:
    with pytest.raises(DimensionMismatchError) as excinfo:
        CalibrationSet.from_pairs([(Point((0.0,)), 1.0), (Point((0.0, 1.0)), 2.0)])

    assert excinfo.value.context["dimensions"] == [1, 2]


@pytest.mark.parametrize(
    ("coordinates", "tolerance"),
    [((1e304,), 1e-5), ((1e9, 0.0), 1e-300), ((-1.7e308,), 1e-5)],
)
def test_huge_coordinates_hash_and_store(coordinates: tuple[float, ...], tolerance: float) -> None:
    dataset = Dataset(tolerance=tolerance)

    dataset.add(coordinates, 1.0)
    dataset.add(coordinates, 2.0)

    assert len(dataset) == 1
    assert dataset[coordinates] == 2.0
    assert hash(Point(coordinates, tolerance=tolerance)) == hash(Point(coordinates, tolerance=tolerance))


def test_equality_is_symmetric_across_tolerances() -> None:
    coarse = Point((1.0,), tolerance=1e-2)
    fine = Point((1.005,), tolerance=1e-5)

    assert coarse == fine
    assert fine == coarse
