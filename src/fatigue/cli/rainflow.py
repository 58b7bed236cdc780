"""Command helpers for the ``rainflow`` sub-command."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Dict, Mapping

from fatigue.cli.common import CliError, as_cli_error, positive_int, render_payload
from fatigue.cli.io import load_table
from fatigue.core.rainflow import count_cycles, cycle_histogram, reversals


def register_subparser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    *,
    config: Mapping[str, Any],
) -> None:
    """Register the ``rainflow`` sub-command."""

    rainflow_cfg = dict(config.get("rainflow", {}))
    parser = subparsers.add_parser(
        "rainflow",
        help="Count the rainflow cycles of a load or stress history.",
    )
    parser.add_argument(
        "series",
        type=Path,
        help="Numeric text table holding the history.",
    )
    parser.add_argument(
        "--column",
        type=int,
        default=int(rainflow_cfg.get("column", 0)),
        help="Zero-based column holding the history (default: 0).",
    )
    parser.add_argument(
        "--skip-header",
        dest="skip_header",
        type=int,
        default=int(rainflow_cfg.get("skip_header", 0)),
        help="Number of leading lines to ignore (default: 0).",
    )
    parser.add_argument(
        "--delimiter",
        default=rainflow_cfg.get("delimiter"),
        help="Column delimiter (default: whitespace).",
    )
    parser.add_argument(
        "--bins",
        type=positive_int,
        default=rainflow_cfg.get("bins"),
        help="Also report a range histogram with this many bins.",
    )
    parser.set_defaults(handler=handle)


def handle(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    """Execute the ``rainflow`` command returning the rendered payload."""

    table = load_table(
        namespace.series,
        skip_header=namespace.skip_header,
        delimiter=namespace.delimiter,
    )
    column = int(namespace.column)
    if not 0 <= column < table.shape[1]:
        raise CliError(
            f"Column {column} is out of range for a table with {table.shape[1]} columns",
            category="usage",
            context={"path": str(namespace.series), "column": column},
        )
    history = table[:, column]

    try:
        turning_points = reversals(history)
        cycles = count_cycles(history)
    except ValueError as exc:
        raise as_cli_error(exc, context={"path": str(namespace.series)}) from exc

    payload: Dict[str, Any] = {
        "series": str(namespace.series),
        "samples": int(history.size),
        "reversals": int(turning_points.size),
        "total_cycles": sum(cycle.count for cycle in cycles),
        "cycles": [
            {"mean": cycle.mean, "range": cycle.range, "count": cycle.count}
            for cycle in cycles
        ],
    }
    if namespace.bins and cycles:
        edges, counts = cycle_histogram(cycles, bins=int(namespace.bins))
        payload["histogram"] = {"edges": edges.tolist(), "counts": counts.tolist()}
    return render_payload(payload)


__all__ = ["register_subparser", "handle"]
