"""Numerical kernels: calibration interpolation and rainflow counting."""

from fatigue.core.errors import (
    DimensionMismatchError,
    EmptyDatasetError,
    InsufficientPointsError,
    InterpolationError,
    SingularSystemError,
)
from fatigue.core.interpolate import (
    AffineModel,
    InterpolationMethod,
    Linear,
    NDInterpolation,
    NearestNeighbor,
    interpolate,
    resolve_strategy,
)
from fatigue.core.points import DEFAULT_TOLERANCE, CalibrationSet, Dataset, Point
from fatigue.core.rainflow import (
    Cycle,
    count_cycles,
    cycle_histogram,
    rainflow,
    reversals,
)

__all__ = [
    "AffineModel",
    "CalibrationSet",
    "Cycle",
    "DEFAULT_TOLERANCE",
    "Dataset",
    "DimensionMismatchError",
    "EmptyDatasetError",
    "InsufficientPointsError",
    "InterpolationError",
    "InterpolationMethod",
    "Linear",
    "NDInterpolation",
    "NearestNeighbor",
    "Point",
    "SingularSystemError",
    "count_cycles",
    "cycle_histogram",
    "interpolate",
    "rainflow",
    "resolve_strategy",
    "reversals",
]
