"""Error types raised by the interpolation engine."""

from __future__ import annotations

from typing import Any, Mapping, Optional

__all__ = [
    "InterpolationError",
    "InsufficientPointsError",
    "SingularSystemError",
    "EmptyDatasetError",
    "DimensionMismatchError",
]


class InterpolationError(ValueError):
    """Base class for failures of an interpolation batch.

    A failure for any target fails the whole batch; no partial results are
    returned alongside the exception.
    """

    kind = "interpolation"

    def __init__(
        self,
        message: str,
        *,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.context = dict(context or {})


class InsufficientPointsError(InterpolationError):
    """Fewer calibration points than a regression strategy needs."""

    kind = "insufficient_points"


class SingularSystemError(InterpolationError):
    """The least-squares system could not be solved."""

    kind = "singular_system"


class EmptyDatasetError(InterpolationError):
    """A query was issued against a dataset without calibration points."""

    kind = "empty_dataset"


class DimensionMismatchError(InterpolationError):
    """Coordinate counts of calibration points or targets disagree."""

    kind = "dimension_mismatch"
