"""Calibration points keyed by tolerance-based coordinate equality.

Two points are the same key when every coordinate differs by at most the
tolerance ``ε``.  Hashing quantizes each coordinate to the nearest multiple
of ``ε`` so that points inside the same quantization cell share a bucket.

ε-equality is not transitive (``a ≈ b`` and ``b ≈ c`` do not imply
``a ≈ c``) and two ε-equal points on either side of a quantization boundary
hash to different cells.  Such pairs are stored as two separate entries.
This is an accepted limitation of the key type; callers that need strict
merging should de-duplicate their calibration data with an explicit radius
search before inserting it.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple, Union

import numpy as np

from .errors import DimensionMismatchError

__all__ = [
    "DEFAULT_TOLERANCE",
    "Point",
    "PointLike",
    "Dataset",
    "CalibrationSet",
    "as_point",
]

DEFAULT_TOLERANCE = 1e-5


def _quantize(value: float, tolerance: float) -> int:
    scaled = value / tolerance
    if not math.isfinite(scaled):
        return hash(value)
    return round(scaled)


@dataclass(frozen=True, slots=True, eq=False)
class Point:
    """Coordinate vector compared with an absolute per-coordinate tolerance."""

    coordinates: Tuple[float, ...]
    source: Optional[str] = field(default=None)
    tolerance: float = field(default=DEFAULT_TOLERANCE)

    def __post_init__(self) -> None:
        values = tuple(float(value) for value in self.coordinates)
        if not all(math.isfinite(value) for value in values):
            raise ValueError(f"Point coordinates must be finite, got {values!r}")
        if not self.tolerance > 0.0:
            raise ValueError(f"Point tolerance must be positive, got {self.tolerance!r}")
        object.__setattr__(self, "coordinates", values)

    def __len__(self) -> int:
        return len(self.coordinates)

    def __iter__(self) -> Iterator[float]:
        return iter(self.coordinates)

    def __getitem__(self, index: int) -> float:
        return self.coordinates[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        if len(self.coordinates) != len(other.coordinates):
            return False
        tolerance = max(self.tolerance, other.tolerance)
        return all(
            abs(a - b) <= tolerance
            for a, b in zip(self.coordinates, other.coordinates)
        )

    def __hash__(self) -> int:
        return hash(self.quantized())

    def quantized(self) -> Tuple[int, ...]:
        """Return the coordinates rounded to multiples of the tolerance.

        Coordinates too large to be divided by the tolerance are bucketed by
        their own hash.
        """

        return tuple(_quantize(value, self.tolerance) for value in self.coordinates)

    def with_tolerance(self, tolerance: float) -> "Point":
        if tolerance == self.tolerance:
            return self
        return Point(self.coordinates, source=self.source, tolerance=tolerance)

    def as_array(self) -> np.ndarray:
        return np.asarray(self.coordinates, dtype=float)


PointLike = Union[Point, Sequence[float], np.ndarray]


def as_point(
    value: PointLike,
    *,
    tolerance: float = DEFAULT_TOLERANCE,
    source: Optional[str] = None,
) -> Point:
    """Coerce ``value`` into a :class:`Point` using ``tolerance``."""

    if isinstance(value, Point):
        point = value.with_tolerance(tolerance)
        if source is not None and point.source is None:
            point = Point(point.coordinates, source=source, tolerance=tolerance)
        return point
    array = np.atleast_1d(np.asarray(value, dtype=float))
    if array.ndim != 1:
        raise ValueError(f"Point coordinates must be one-dimensional, got shape {array.shape}")
    return Point(tuple(array.tolist()), source=source, tolerance=tolerance)


@dataclass(frozen=True, slots=True)
class CalibrationSet:
    """Read-only snapshot of a dataset handed to interpolation strategies.

    Rows of ``coordinates`` and entries of ``values`` follow the insertion
    order of the originating :class:`Dataset`.
    """

    coordinates: np.ndarray
    values: np.ndarray
    points: Tuple[Point, ...] = ()

    def __len__(self) -> int:
        return int(self.values.shape[0])

    @property
    def dimension(self) -> Optional[int]:
        if len(self) == 0:
            return None
        return int(self.coordinates.shape[1])

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[Point, float]]) -> "CalibrationSet":
        points: list[Point] = []
        values: list[float] = []
        for point, value in pairs:
            points.append(point)
            values.append(float(value))
        if not points:
            coordinates = np.empty((0, 0), dtype=float)
        else:
            dimensions = {len(point) for point in points}
            if len(dimensions) != 1:
                raise DimensionMismatchError(
                    "Calibration points must share one dimensionality, "
                    f"found {sorted(dimensions)}",
                    context={"dimensions": sorted(dimensions)},
                )
            coordinates = np.array([point.coordinates for point in points], dtype=float)
        value_array = np.asarray(values, dtype=float)
        coordinates.setflags(write=False)
        value_array.setflags(write=False)
        return cls(coordinates=coordinates, values=value_array, points=tuple(points))


class Dataset:
    """Mutable mapping of calibration points to scalar values.

    Inserting a point within the tolerance of a stored key overwrites the
    stored value and keeps the original key.
    """

    __slots__ = ("_entries", "_tolerance")

    def __init__(
        self,
        pairs: Iterable[Tuple[PointLike, float]] = (),
        *,
        tolerance: float = DEFAULT_TOLERANCE,
    ) -> None:
        if not tolerance > 0.0:
            raise ValueError(f"Dataset tolerance must be positive, got {tolerance!r}")
        self._tolerance = float(tolerance)
        self._entries: dict[Point, float] = {}
        for point, value in pairs:
            self.add(point, value)

    @property
    def tolerance(self) -> float:
        return self._tolerance

    def add(self, point: PointLike, value: float) -> None:
        """Insert ``value`` at ``point`` or overwrite the ε-equal stored key."""

        key = as_point(point, tolerance=self._tolerance)
        self._entries[key] = float(value)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Point]:
        return iter(self._entries)

    def __contains__(self, point: Any) -> bool:
        try:
            key = as_point(point, tolerance=self._tolerance)
        except (TypeError, ValueError):
            return False
        return key in self._entries

    def __getitem__(self, point: PointLike) -> float:
        return self._entries[as_point(point, tolerance=self._tolerance)]

    def items(self) -> Iterable[Tuple[Point, float]]:
        return self._entries.items()

    def clear(self) -> None:
        self._entries.clear()

    def freeze(self) -> CalibrationSet:
        """Return an immutable snapshot suitable for a query batch."""

        return CalibrationSet.from_pairs(self._entries.items())

    def __repr__(self) -> str:
        return f"Dataset(size={len(self)}, tolerance={self._tolerance!r})"
