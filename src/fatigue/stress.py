"""Stress tensor helpers and unit stress file reading."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

__all__ = [
    "StressTensor",
    "StressCriterion",
    "criterion_values",
    "read_stress_tensors",
    "parse_stress_lines",
]

logger = logging.getLogger(__name__)

_VOIGT_INDICES: Tuple[Tuple[int, int], ...] = (
    (0, 0),
    (1, 1),
    (2, 2),
    (0, 1),
    (1, 2),
    (0, 2),
)


@dataclass(frozen=True, slots=True)
class StressTensor:
    """Symmetric Cauchy stress tensor stored as a read-only 3×3 matrix."""

    matrix: np.ndarray

    def __post_init__(self) -> None:
        matrix = np.array(self.matrix, dtype=float)
        if matrix.shape != (3, 3):
            raise ValueError(f"Stress tensor must be 3x3, got shape {matrix.shape}")
        matrix.setflags(write=False)
        object.__setattr__(self, "matrix", matrix)

    @classmethod
    def from_components(
        cls,
        sxx: float,
        syy: float,
        szz: float,
        sxy: float = 0.0,
        syz: float = 0.0,
        szx: float = 0.0,
    ) -> "StressTensor":
        return cls(
            np.array(
                [
                    [sxx, sxy, szx],
                    [sxy, syy, syz],
                    [szx, syz, szz],
                ],
                dtype=float,
            )
        )

    @classmethod
    def from_voigt(cls, vector: Sequence[float]) -> "StressTensor":
        """Build a tensor from ``(σxx, σyy, σzz, τxy, τyz, τzx)``."""

        values = [float(value) for value in vector]
        if len(values) != 6:
            raise ValueError(f"Voigt vector must hold 6 components, got {len(values)}")
        return cls.from_components(*values)

    @property
    def voigt(self) -> np.ndarray:
        return np.array([self.matrix[i, j] for i, j in _VOIGT_INDICES], dtype=float)

    @property
    def sxx(self) -> float:
        return float(self.matrix[0, 0])

    @property
    def syy(self) -> float:
        return float(self.matrix[1, 1])

    @property
    def szz(self) -> float:
        return float(self.matrix[2, 2])

    @property
    def sxy(self) -> float:
        return float(self.matrix[0, 1])

    @property
    def syz(self) -> float:
        return float(self.matrix[1, 2])

    @property
    def szx(self) -> float:
        return float(self.matrix[0, 2])

    def principal_stresses(self) -> np.ndarray:
        """Principal stresses in ascending order."""

        return np.linalg.eigvalsh(self.matrix)

    def principal_direction(self) -> np.ndarray:
        """Rotation matrix onto the principal frame.

        Rows are the unit axis of the smallest principal stress, the unit
        axis of the largest, and their cross product.
        """

        _, vectors = np.linalg.eigh(self.matrix)
        first = vectors[:, 0] / np.linalg.norm(vectors[:, 0])
        last = vectors[:, 2] / np.linalg.norm(vectors[:, 2])
        return np.vstack((first, last, np.cross(first, last)))

    def max_principal_stress(self) -> float:
        return float(self.principal_stresses()[-1])

    def von_mises_stress(self) -> float:
        s1, s2, s3 = self.principal_stresses()
        return float(math.sqrt(((s1 - s2) ** 2 + (s2 - s3) ** 2 + (s3 - s1) ** 2) / 2.0))

    def normal_stress(self, angle: float) -> float:
        """Normal stress on the plane rotated by ``angle`` about the z axis."""

        cosine = math.cos(angle)
        sine = math.sin(angle)
        return (
            self.sxx * cosine * cosine
            + self.syy * sine * sine
            + 2.0 * self.sxy * sine * cosine
        )


class StressCriterion(str, Enum):
    """Reduction of a stress tensor into scalar channels."""

    VONMISES = "VONMISES"
    MAXIMUM = "MAXIMUM"
    SXXCRIT = "SXXCRIT"
    NONE = "NONE"

    @classmethod
    def from_name(cls, name: str) -> "StressCriterion":
        try:
            return cls(str(name).strip().upper())
        except ValueError as exc:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(
                f"Unknown stress criterion {name!r}; expected one of: {choices}"
            ) from exc


def criterion_values(
    tensor: StressTensor,
    criterion: StressCriterion | str,
    number: Optional[int] = None,
) -> Tuple[float, ...]:
    """Return the scalar channels of ``tensor`` under ``criterion``.

    ``SXXCRIT`` scans ``number`` planes evenly spaced over ``[0, π)`` about
    the z axis and returns the normal stress on each; ``NONE`` returns the
    six Voigt components.
    """

    resolved = (
        criterion
        if isinstance(criterion, StressCriterion)
        else StressCriterion.from_name(criterion)
    )
    if resolved is StressCriterion.VONMISES:
        return (tensor.von_mises_stress(),)
    if resolved is StressCriterion.MAXIMUM:
        return (tensor.max_principal_stress(),)
    if resolved is StressCriterion.SXXCRIT:
        planes = int(number or 0)
        if planes <= 0:
            raise ValueError("SXXCRIT needs a positive number of planes")
        return tuple(
            tensor.normal_stress(math.pi * index / planes) for index in range(planes)
        )
    return tuple(float(value) for value in tensor.voigt)


def _parse_numbers(tokens: Iterable[str]) -> List[float]:
    numbers: List[float] = []
    for token in tokens:
        text = token.strip()
        if not text:
            continue
        try:
            numbers.append(float(text))
        except ValueError:
            continue
    return numbers


def parse_stress_lines(
    lines: Iterable[str],
    *,
    header: int = 0,
    delimiter: Optional[str] = None,
) -> List[Tuple[int, StressTensor]]:
    """Parse ``node sxx syy szz sxy syz szx`` rows into stress tensors.

    The first ``header`` lines are ignored, as is every line that does not
    hold exactly seven numbers.
    """

    separator = delimiter if delimiter not in ("", " ") else None
    tensors: List[Tuple[int, StressTensor]] = []
    skipped = 0
    for index, line in enumerate(lines):
        if index < header:
            continue
        values = _parse_numbers(line.split(separator))
        if len(values) != 7:
            skipped += 1
            continue
        tensors.append((int(values[0]), StressTensor.from_components(*values[1:])))
    if skipped and logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Skipped malformed stress rows",
            extra={"event": "stress.skipped_rows", "skipped": skipped},
        )
    return tensors


def read_stress_tensors(
    path: str | Path,
    *,
    header: int = 0,
    delimiter: Optional[str] = None,
) -> List[Tuple[int, StressTensor]]:
    """Read the ``(node, tensor)`` pairs stored in a unit stress file."""

    source = Path(path)
    with source.open("r", encoding="utf-8") as handle:
        tensors = parse_stress_lines(handle, header=header, delimiter=delimiter)
    logger.debug(
        "Read stress tensors",
        extra={"event": "stress.read", "path": str(source), "tensors": len(tensors)},
    )
    return tensors
