"""Command helpers for the ``interpolate`` sub-command."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Dict, Mapping

from fatigue.cli.common import CliError, as_cli_error, positive_int, render_payload
from fatigue.cli.io import load_table
from fatigue.core.interpolate import InterpolationMethod, NDInterpolation
from fatigue.core.points import DEFAULT_TOLERANCE


def _configured_method(config: Mapping[str, Any]) -> InterpolationMethod:
    name = dict(config.get("interpolate", {})).get("method", InterpolationMethod.LINEAR.value)
    try:
        return InterpolationMethod.from_name(name)
    except ValueError as exc:
        raise CliError(
            f"Invalid [tool.fatigue.interpolate] method: {exc}",
            category="usage",
            context={"method": name, "config": config.get("_config_path")},
        ) from exc


def register_subparser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    *,
    config: Mapping[str, Any],
) -> None:
    """Register the ``interpolate`` sub-command."""

    interpolate_cfg = dict(config.get("interpolate", {}))
    parser = subparsers.add_parser(
        "interpolate",
        help="Evaluate targets against a table of calibration points.",
    )
    parser.add_argument(
        "points",
        type=Path,
        help="Calibration table: coordinate columns followed by the value column.",
    )
    parser.add_argument(
        "targets",
        type=Path,
        help="Target table with one coordinate column per dimension.",
    )
    parser.add_argument(
        "--method",
        type=InterpolationMethod.from_name,
        default=None,
        help=(
            "Interpolation strategy: linear, nearest_neighbor or an alias such as "
            "nearest or NONE (default: [tool.fatigue.interpolate] method, else linear)."
        ),
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=float(interpolate_cfg.get("tolerance", DEFAULT_TOLERANCE)),
        help="Per-coordinate tolerance used to merge calibration points.",
    )
    parser.add_argument(
        "--workers",
        type=positive_int,
        default=int(interpolate_cfg.get("workers", 1)),
        help="Number of threads evaluating target chunks (default: 1).",
    )
    parser.set_defaults(handler=handle)


def handle(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    """Execute the ``interpolate`` command returning the rendered payload."""

    method = namespace.method if namespace.method is not None else _configured_method(config)
    calibration = load_table(namespace.points)
    if calibration.shape[1] < 2:
        raise CliError(
            "Calibration tables need at least one coordinate column and a value column",
            category="usage",
            context={"path": str(namespace.points), "columns": int(calibration.shape[1])},
        )
    targets = load_table(namespace.targets)

    try:
        interpolator = NDInterpolation(
            method,
            tolerance=namespace.tolerance,
            workers=namespace.workers,
        )
        for row in calibration:
            interpolator.add_point(row[:-1], float(row[-1]))
        values = interpolator.interpolate(targets)
    except ValueError as exc:
        raise as_cli_error(
            exc,
            context={"points": str(namespace.points), "targets": str(namespace.targets)},
        ) from exc

    payload: Dict[str, Any] = {
        "method": method.value,
        "points": len(interpolator),
        "targets": int(targets.shape[0]),
        "values": values.tolist(),
    }
    return render_payload(payload)


__all__ = ["register_subparser", "handle"]
