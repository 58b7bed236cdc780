"""N-dimensional interpolation and extrapolation of calibration data.

Two strategies are available and selected through
:class:`InterpolationMethod`:

``LINEAR``
    A single global affine model ``β0 + Σ βi·xi`` fitted by least squares
    through a truncated singular value decomposition.  The same formula is
    used inside and outside the sampled range, so data that is exactly affine
    in its coordinates is reproduced exactly everywhere.
``NEAREST_NEIGHBOR``
    The value of the calibration point with the smallest Euclidean distance
    to the target.  Ties resolve to the earliest inserted point.

Targets are independent of each other.  Batches can be split across worker
threads; results are always index-aligned with the input targets and a
failure of any target fails the whole batch.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Iterable, Sequence, Tuple, Union

import numpy as np

from .errors import (
    DimensionMismatchError,
    EmptyDatasetError,
    InsufficientPointsError,
    SingularSystemError,
)
from .points import (
    DEFAULT_TOLERANCE,
    CalibrationSet,
    Dataset,
    Point,
    PointLike,
)

__all__ = [
    "SVD_TRUNCATION",
    "AffineModel",
    "InterpolationMethod",
    "Linear",
    "NearestNeighbor",
    "NDInterpolation",
    "Strategy",
    "interpolate",
    "resolve_strategy",
    "target_matrix",
]

logger = logging.getLogger(__name__)

SVD_TRUNCATION = 1e-12

# Upper bound on targets × calibration points materialised at once by the
# nearest-neighbour distance computation.
_NEAREST_BLOCK_ELEMENTS = 1 << 22

Targets = Union[Sequence[PointLike], np.ndarray]


def _as_calibration_set(dataset: Union[Dataset, CalibrationSet]) -> CalibrationSet:
    if isinstance(dataset, CalibrationSet):
        return dataset
    if isinstance(dataset, Dataset):
        return dataset.freeze()
    raise TypeError(
        f"Expected a Dataset or CalibrationSet, got {type(dataset).__name__}"
    )


def target_matrix(targets: Targets, dimension: int | None) -> np.ndarray:
    """Return ``targets`` as a ``(n, dimension)`` float matrix.

    A flat sequence of scalars is accepted as a column of one-dimensional
    targets when ``dimension`` is ``1``.
    """

    if isinstance(targets, Point):
        raise TypeError("Expected a sequence of targets, got a single Point")
    rows: Any = targets
    if not isinstance(targets, np.ndarray):
        rows = [
            target.coordinates if isinstance(target, Point) else target
            for target in targets
        ]
    try:
        matrix = np.asarray(rows, dtype=float)
    except ValueError as exc:
        raise DimensionMismatchError(
            "Targets must share one dimensionality",
            context={"expected": dimension},
        ) from exc
    if matrix.size == 0:
        width = dimension if dimension is not None else 0
        return np.empty((0, width), dtype=float)
    if matrix.ndim == 1:
        if dimension != 1:
            raise DimensionMismatchError(
                f"Flat target sequences require one-dimensional data, dataset has {dimension}",
                context={"expected": dimension, "received": 1},
            )
        matrix = matrix.reshape(-1, 1)
    if matrix.ndim != 2:
        raise DimensionMismatchError(
            f"Targets must form a two-dimensional matrix, got shape {matrix.shape}",
            context={"expected": dimension, "shape": list(matrix.shape)},
        )
    if dimension is not None and matrix.shape[1] != dimension:
        raise DimensionMismatchError(
            f"Targets have {matrix.shape[1]} coordinates, calibration points have {dimension}",
            context={"expected": dimension, "received": int(matrix.shape[1])},
        )
    return matrix


def _map_chunks(
    func: Callable[[np.ndarray], np.ndarray],
    matrix: np.ndarray,
    workers: int,
) -> np.ndarray:
    rows = matrix.shape[0]
    if workers <= 1 or rows < 2:
        return np.asarray(func(matrix), dtype=float)
    chunks = np.array_split(matrix, min(workers, rows))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(func, chunks))
    return np.concatenate(results).astype(float, copy=False)


@dataclass(frozen=True, slots=True)
class AffineModel:
    """Coefficients ``[β0, β1, …, βd]`` of a fitted affine model."""

    coefficients: np.ndarray

    @property
    def intercept(self) -> float:
        return float(self.coefficients[0])

    @property
    def slopes(self) -> np.ndarray:
        return self.coefficients[1:]

    @property
    def dimension(self) -> int:
        return int(self.coefficients.shape[0] - 1)

    def predict(self, targets: np.ndarray) -> np.ndarray:
        return self.coefficients[0] + targets @ self.coefficients[1:]


@dataclass(frozen=True, slots=True)
class Linear:
    """Multivariate linear regression solved through a truncated SVD."""

    rcond: float = SVD_TRUNCATION

    minimum_points: ClassVar[int] = 2

    def fit(self, dataset: Union[Dataset, CalibrationSet]) -> AffineModel:
        """Fit the affine model to ``dataset``.

        Singular values not larger than ``rcond`` are discarded, which yields
        the minimum-norm solution for rank-deficient calibration layouts.
        """

        calibration = _as_calibration_set(dataset)
        size = len(calibration)
        if size < self.minimum_points:
            raise InsufficientPointsError(
                f"Linear interpolation needs at least {self.minimum_points} points, got {size}",
                context={"points": size, "required": self.minimum_points},
            )

        design = np.hstack(
            (np.ones((size, 1), dtype=float), calibration.coordinates)
        )
        try:
            left, singular, right = np.linalg.svd(design, full_matrices=False)
        except np.linalg.LinAlgError as exc:
            raise SingularSystemError(
                "SVD of the calibration design matrix did not converge",
                context={"points": size, "dimension": calibration.dimension},
            ) from exc

        retained = singular > self.rcond
        if not retained.any():
            raise SingularSystemError(
                "Calibration design matrix has no singular value above the truncation threshold",
                context={"points": size, "rcond": self.rcond},
            )
        inverse = np.zeros_like(singular)
        inverse[retained] = 1.0 / singular[retained]
        coefficients = right.T @ (inverse * (left.T @ calibration.values))
        if not np.all(np.isfinite(coefficients)):
            raise SingularSystemError(
                "Least-squares solution is not finite",
                context={"points": size},
            )

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Fitted affine calibration model",
                extra={
                    "event": "interpolate.fit",
                    "points": size,
                    "dimension": calibration.dimension,
                    "rank": int(retained.sum()),
                },
            )
        coefficients.setflags(write=False)
        return AffineModel(coefficients=coefficients)

    def interpolate(
        self,
        dataset: Union[Dataset, CalibrationSet],
        targets: Targets,
        *,
        workers: int = 1,
    ) -> np.ndarray:
        calibration = _as_calibration_set(dataset)
        model = self.fit(calibration)
        matrix = target_matrix(targets, model.dimension)
        return _map_chunks(model.predict, matrix, workers)


@dataclass(frozen=True, slots=True)
class NearestNeighbor:
    """Value of the closest calibration point in Euclidean distance."""

    def interpolate(
        self,
        dataset: Union[Dataset, CalibrationSet],
        targets: Targets,
        *,
        workers: int = 1,
    ) -> np.ndarray:
        calibration = _as_calibration_set(dataset)
        if len(calibration) == 0:
            raise EmptyDatasetError(
                "Nearest-neighbour interpolation needs at least one calibration point",
                context={"points": 0},
            )
        matrix = target_matrix(targets, calibration.dimension)
        coordinates = calibration.coordinates
        values = calibration.values
        block = max(1, _NEAREST_BLOCK_ELEMENTS // max(1, coordinates.size))

        def evaluate(chunk: np.ndarray) -> np.ndarray:
            result = np.empty(chunk.shape[0], dtype=float)
            for start in range(0, chunk.shape[0], block):
                window = chunk[start : start + block]
                offsets = window[:, np.newaxis, :] - coordinates[np.newaxis, :, :]
                squared = np.einsum("ijk,ijk->ij", offsets, offsets)
                # argmin returns the first minimum, i.e. the earliest inserted point.
                result[start : start + block] = values[np.argmin(squared, axis=1)]
            return result

        return _map_chunks(evaluate, matrix, workers)


Strategy = Union[Linear, NearestNeighbor]


class InterpolationMethod(str, Enum):
    """Closed set of interpolation strategies."""

    LINEAR = "linear"
    NEAREST_NEIGHBOR = "nearest_neighbor"

    @classmethod
    def from_name(cls, name: str) -> "InterpolationMethod":
        """Parse configuration names such as ``LINEAR`` or ``nearest``."""

        key = str(name).strip().lower().replace("-", "_")
        method = _METHOD_ALIASES.get(key)
        if method is None:
            choices = ", ".join(sorted(_METHOD_ALIASES))
            raise ValueError(f"Unknown interpolation method {name!r}; expected one of: {choices}")
        return method

    def strategy(self) -> Strategy:
        if self is InterpolationMethod.LINEAR:
            return Linear()
        return NearestNeighbor()


_METHOD_ALIASES = {
    "linear": InterpolationMethod.LINEAR,
    "nearest": InterpolationMethod.NEAREST_NEIGHBOR,
    "nearest_neighbor": InterpolationMethod.NEAREST_NEIGHBOR,
    "nearest_neighbour": InterpolationMethod.NEAREST_NEIGHBOR,
    "none": InterpolationMethod.NEAREST_NEIGHBOR,
}


def resolve_strategy(method: Union[InterpolationMethod, str, Strategy]) -> Strategy:
    """Return the strategy instance described by ``method``."""

    if isinstance(method, (Linear, NearestNeighbor)):
        return method
    if isinstance(method, InterpolationMethod):
        return method.strategy()
    if isinstance(method, str):
        return InterpolationMethod.from_name(method).strategy()
    raise TypeError(f"Unsupported interpolation strategy: {method!r}")


def interpolate(
    dataset: Union[Dataset, CalibrationSet],
    targets: Targets,
    method: Union[InterpolationMethod, str, Strategy] = InterpolationMethod.LINEAR,
    *,
    workers: int = 1,
) -> np.ndarray:
    """Evaluate ``targets`` against ``dataset`` with the selected strategy."""

    return resolve_strategy(method).interpolate(dataset, targets, workers=workers)


class NDInterpolation:
    """Calibration dataset bound to an interpolation strategy.

    Points are accumulated with :meth:`add_point`.  Every call to
    :meth:`interpolate` evaluates a frozen snapshot of the dataset, so the
    batch is unaffected by insertions made while it runs.  Target
    dimensionality is not checked here; mismatches surface from the strategy.
    """

    __slots__ = ("_dataset", "_strategy", "_workers")

    def __init__(
        self,
        method: Union[InterpolationMethod, str, Strategy] = InterpolationMethod.LINEAR,
        *,
        tolerance: float = DEFAULT_TOLERANCE,
        workers: int = 1,
    ) -> None:
        self._strategy = resolve_strategy(method)
        self._dataset = Dataset(tolerance=tolerance)
        self._workers = max(1, int(workers))

    @property
    def strategy(self) -> Strategy:
        return self._strategy

    @property
    def dataset(self) -> Dataset:
        return self._dataset

    @property
    def workers(self) -> int:
        return self._workers

    @property
    def points(self) -> Tuple[Point, ...]:
        return tuple(self._dataset)

    def __len__(self) -> int:
        return len(self._dataset)

    def add_point(self, point: PointLike, value: float) -> None:
        self._dataset.add(point, value)

    def add_points(self, pairs: Iterable[Tuple[PointLike, float]]) -> None:
        for point, value in pairs:
            self._dataset.add(point, value)

    def freeze(self) -> CalibrationSet:
        return self._dataset.freeze()

    def interpolate(self, targets: Targets) -> np.ndarray:
        if not isinstance(targets, (np.ndarray, Sequence, Point)):
            targets = list(targets)
        calibration = self.freeze()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Interpolating target batch",
                extra={
                    "event": "interpolate.batch",
                    "strategy": type(self._strategy).__name__,
                    "points": len(calibration),
                    "targets": len(targets),
                    "workers": self._workers,
                },
            )
        return self._strategy.interpolate(calibration, targets, workers=self._workers)

    def interpolate_one(self, target: PointLike) -> float:
        return float(self.interpolate([target])[0])

    def __repr__(self) -> str:
        return (
            f"NDInterpolation(strategy={type(self._strategy).__name__}, "
            f"points={len(self._dataset)}, workers={self._workers})"
        )
