"""Structural fatigue assessment building blocks.

The package exposes tolerance-aware N-dimensional interpolation of
calibration data, ASTM E1049 rainflow cycle counting, stress tensor
reductions, and the YAML-driven assessment pipeline that ties them
together.
"""

from ._version import __version__
from .config_loader import AssessmentConfig, ConfigError, load_config
from .core import (
    CalibrationSet,
    Cycle,
    Dataset,
    DimensionMismatchError,
    EmptyDatasetError,
    InsufficientPointsError,
    InterpolationError,
    InterpolationMethod,
    Linear,
    NDInterpolation,
    NearestNeighbor,
    Point,
    SingularSystemError,
    count_cycles,
    cycle_histogram,
    interpolate,
    rainflow,
    reversals,
)
from .expressions import ExpressionError, evaluate_expressions
from .pipeline import build_interpolators, run_assessment
from .stress import StressCriterion, StressTensor, read_stress_tensors

__all__ = [
    "__version__",
    "AssessmentConfig",
    "CalibrationSet",
    "ConfigError",
    "Cycle",
    "Dataset",
    "DimensionMismatchError",
    "EmptyDatasetError",
    "ExpressionError",
    "InsufficientPointsError",
    "InterpolationError",
    "InterpolationMethod",
    "Linear",
    "NDInterpolation",
    "NearestNeighbor",
    "Point",
    "SingularSystemError",
    "StressCriterion",
    "StressTensor",
    "build_interpolators",
    "count_cycles",
    "cycle_histogram",
    "evaluate_expressions",
    "interpolate",
    "load_config",
    "rainflow",
    "read_stress_tensors",
    "reversals",
    "run_assessment",
]
