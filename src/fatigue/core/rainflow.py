"""Rainflow cycle counting following ASTM E1049-85 §5.4.4.

The history is first reduced to its reversals (local extrema).  Reversals
are pushed on a stack one at a time; after every push the two most recent
ranges are compared:

* ``X < Y``: read the next reversal.
* ``X ≥ Y`` and ``Y`` contains the starting point: count ``Y`` as a half
  cycle and drop its first reversal.  The starting point moves on.
* ``X ≥ Y`` otherwise: count ``Y`` as a full cycle and drop both of its
  reversals.

Whatever remains on the stack at the end of the history is counted pairwise
as half cycles.  Counting is strictly sequential: every step depends on the
stack left behind by the previous one.

References:
    ASTM E1049-85 (2017), "Standard Practices for Cycle Counting in
    Fatigue Analysis".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import numpy as np

__all__ = [
    "FULL_CYCLE",
    "HALF_CYCLE",
    "Cycle",
    "reversals",
    "count_cycles",
    "rainflow",
    "cycle_histogram",
]

logger = logging.getLogger(__name__)

FULL_CYCLE = 1.0
HALF_CYCLE = 0.5


@dataclass(frozen=True, slots=True)
class Cycle:
    """Closed (``count == 1.0``) or half (``count == 0.5``) hysteresis cycle."""

    mean: float
    range: float
    count: float = FULL_CYCLE

    @property
    def amplitude(self) -> float:
        return 0.5 * self.range

    @property
    def is_half(self) -> bool:
        return self.count == HALF_CYCLE

    @property
    def weighted_range(self) -> float:
        """Range scaled by the cycle multiplicity."""

        return self.range * self.count


def _as_history(series: Sequence[float] | np.ndarray) -> np.ndarray:
    history = np.asarray(series, dtype=float).ravel()
    if not np.all(np.isfinite(history)):
        raise ValueError("Stress history must only contain finite values")
    return history


def reversals(series: Sequence[float] | np.ndarray) -> np.ndarray:
    """Return the strictly alternating extrema of ``series``.

    Exactly equal consecutive samples are collapsed before turning points are
    detected, so flat runs never create a reversal.  The first and last
    samples bound the history and are kept whenever at least one interior
    turning point exists; a monotonic or constant history has no reversals.
    """

    history = _as_history(series)
    if history.size < 2:
        return np.empty(0, dtype=float)

    keep = np.empty(history.size, dtype=bool)
    keep[0] = True
    keep[1:] = history[1:] != history[:-1]
    collapsed = history[keep]
    if collapsed.size < 3:
        return np.empty(0, dtype=float)

    slopes = np.diff(collapsed)
    turning = np.flatnonzero(slopes[:-1] * slopes[1:] < 0.0) + 1
    if turning.size == 0:
        return np.empty(0, dtype=float)

    indices = np.concatenate(([0], turning, [collapsed.size - 1]))
    return collapsed[indices]


def _closed_cycle(first: float, second: float, count: float) -> Cycle:
    return Cycle(mean=0.5 * (first + second), range=abs(second - first), count=count)


def count_cycles(series: Sequence[float] | np.ndarray) -> List[Cycle]:
    """Count the rainflow cycles of ``series`` in the order they resolve."""

    points = reversals(series).tolist()
    cycles: List[Cycle] = []
    stack: List[float] = []
    # The starting point is always stack[0], so Y contains it exactly when
    # the stack holds three reversals.
    for value in points:
        stack.append(value)
        while len(stack) >= 3:
            current = abs(stack[-1] - stack[-2])
            previous = abs(stack[-2] - stack[-3])
            if current < previous:
                break
            if len(stack) == 3:
                cycles.append(_closed_cycle(stack[0], stack[1], HALF_CYCLE))
                del stack[0]
            else:
                cycles.append(_closed_cycle(stack[-3], stack[-2], FULL_CYCLE))
                del stack[-3:-1]

    for first, second in zip(stack, stack[1:]):
        cycles.append(_closed_cycle(first, second, HALF_CYCLE))

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Counted rainflow cycles",
            extra={
                "event": "rainflow.count",
                "reversals": len(points),
                "cycles": len(cycles),
                "residual": len(stack),
            },
        )
    return cycles


def rainflow(series: Sequence[float] | np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(means, ranges)`` of the rainflow cycles of ``series``.

    Both arrays hold one entry per resolved cycle in resolution order.  Full
    cycles report their range, half cycles report half of their range.
    """

    cycles = count_cycles(series)
    means = np.fromiter((cycle.mean for cycle in cycles), dtype=float, count=len(cycles))
    ranges = np.fromiter(
        (cycle.weighted_range for cycle in cycles), dtype=float, count=len(cycles)
    )
    return means, ranges


def cycle_histogram(
    cycles: Iterable[Cycle],
    bins: int | Sequence[float] = 10,
) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(edges, counts)`` of cycle ranges weighted by multiplicity."""

    cycle_list = list(cycles)
    ranges = np.fromiter((cycle.range for cycle in cycle_list), dtype=float)
    weights = np.fromiter((cycle.count for cycle in cycle_list), dtype=float)
    counts, edges = np.histogram(ranges, bins=bins, weights=weights)
    return edges, counts
