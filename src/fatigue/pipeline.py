"""Wire assessment configurations into per-node stress interpolators."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import numpy as np

from fatigue.config_loader import AssessmentConfig, InterpolationConfig, load_config
from fatigue.core.interpolate import NDInterpolation, Targets
from fatigue.core.points import Point
from fatigue.core.rainflow import Cycle, count_cycles
from fatigue.expressions import evaluate_expressions
from fatigue.stress import criterion_values, read_stress_tensors

__all__ = [
    "ChannelKey",
    "assess_history",
    "build_interpolators",
    "channel_histories",
    "run_assessment",
    "stress_history",
]

logger = logging.getLogger(__name__)

RUN_MODES = ("local", "cloud")


@dataclass(frozen=True, slots=True)
class ChannelKey:
    """Identifies one scalar stress channel of one node."""

    interpolation: str
    node: int
    channel: int


Interpolators = Dict[ChannelKey, NDInterpolation]


def _resolve_directory(base_dir: Path, path: str) -> Path:
    candidate = Path(path).expanduser()
    if candidate.is_absolute():
        return candidate
    return base_dir / candidate


def _feed_interpolation(
    interpolators: Interpolators,
    config: AssessmentConfig,
    interpolation: InterpolationConfig,
    *,
    base_dir: Path,
    workers: int,
) -> None:
    criteria = config.solution.stress_criteria
    nodes = config.solution.node
    directory = _resolve_directory(base_dir, interpolation.path)
    for spec in interpolation.points:
        path = directory / spec.file
        tensors = read_stress_tensors(
            path,
            header=interpolation.parse_config.header,
            delimiter=interpolation.parse_config.delimiter,
        )
        point = Point(spec.coordinates, source=spec.file)
        for node, tensor in tensors:
            if node not in nodes:
                continue
            values = criterion_values(tensor, criteria.method, criteria.number)
            for channel, value in enumerate(values):
                key = ChannelKey(interpolation.name, node, channel)
                interpolator = interpolators.get(key)
                if interpolator is None:
                    interpolator = NDInterpolation(interpolation.method, workers=workers)
                    interpolators[key] = interpolator
                interpolator.add_point(point, value * interpolation.scale)


def build_interpolators(
    config: AssessmentConfig,
    *,
    base_dir: Optional[Path] = None,
    workers: int = 1,
) -> Interpolators:
    """Build one interpolator per ``(interpolation, node, channel)``.

    Every calibration point of every configured interpolation contributes
    the unit stress read from its file, reduced with the configured stress
    criterion and multiplied by the interpolation scale.  Relative paths are
    resolved against ``base_dir`` (default: the configuration's directory).
    """

    root = base_dir if base_dir is not None else config.base_dir
    interpolators: Interpolators = {}
    for interpolation in config.timeseries.interpolations:
        _feed_interpolation(
            interpolators,
            config,
            interpolation,
            base_dir=root,
            workers=workers,
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Built interpolation channels",
                extra={
                    "event": "pipeline.interpolation",
                    "interpolation": interpolation.name,
                    "points": len(interpolation.points),
                    "channels": sum(
                        1 for key in interpolators if key.interpolation == interpolation.name
                    ),
                },
            )
    return interpolators


def stress_history(interpolator: NDInterpolation, sensor_history: Targets) -> np.ndarray:
    """Interpolate a ``(samples × dimension)`` sensor history into stresses."""

    return interpolator.interpolate(sensor_history)


def assess_history(interpolator: NDInterpolation, sensor_history: Targets) -> List[Cycle]:
    """Count the rainflow cycles of the stress history driven by ``sensor_history``."""

    return count_cycles(stress_history(interpolator, sensor_history))


def _interpolation_summary(
    interpolation: InterpolationConfig, interpolators: Mapping[ChannelKey, NDInterpolation]
) -> Dict[str, Any]:
    keys = [key for key in interpolators if key.interpolation == interpolation.name]
    return {
        "name": interpolation.name,
        "method": interpolation.method.value,
        "dimension": interpolation.dimension,
        "sensors": list(interpolation.sensor),
        "points": len(interpolation.points),
        "nodes": len({key.node for key in keys}),
        "channels": len(keys),
    }


def run_assessment(
    config_path: Union[str, Path],
    *,
    mode: str = "local",
    workers: int = 1,
    base_dir: Optional[Path] = None,
) -> Dict[str, Any]:
    """Load ``config_path``, evaluate its expressions and build its interpolators.

    Returns a JSON-serialisable summary of the prepared assessment.
    """

    if mode not in RUN_MODES:
        raise ValueError(f"Unknown run mode {mode!r}; expected one of: {', '.join(RUN_MODES)}")
    config = load_config(config_path)
    logger.info(
        "Running assessment",
        extra={"event": "pipeline.start", "config": str(config.source), "mode": mode},
    )

    timeseries = config.timeseries
    expressions = evaluate_expressions(
        timeseries.parameters, timeseries.variables, timeseries.order
    )
    interpolators = build_interpolators(config, base_dir=base_dir, workers=workers)

    criteria = config.solution.stress_criteria
    payload: Dict[str, Any] = {
        "config": str(config.source),
        "mode": mode,
        "run_type": config.solution.run_type,
        "criterion": {"method": criteria.method.value, "number": criteria.number},
        "nodes": {"from": config.solution.node.start, "to": config.solution.node.end},
        "material": config.material.name,
        "loadcases": len(timeseries.loadcases),
        "expressions": expressions,
        "interpolations": [
            _interpolation_summary(interpolation, interpolators)
            for interpolation in timeseries.interpolations
        ],
        "channels": len(interpolators),
    }
    logger.info(
        "Assessment prepared",
        extra={
            "event": "pipeline.complete",
            "channels": len(interpolators),
            "expressions": len(expressions),
        },
    )
    return payload


def channel_histories(
    interpolators: Mapping[ChannelKey, NDInterpolation],
    sensor_history: Targets,
    *,
    interpolation: Optional[str] = None,
) -> Dict[ChannelKey, np.ndarray]:
    """Evaluate ``sensor_history`` on every channel, optionally of one interpolation."""

    histories: Dict[ChannelKey, np.ndarray] = {}
    for key, interpolator in interpolators.items():
        if interpolation is not None and key.interpolation != interpolation:
            continue
        histories[key] = stress_history(interpolator, sensor_history)
    return histories
