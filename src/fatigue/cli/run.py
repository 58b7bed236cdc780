"""Command helpers for the ``run`` sub-command."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Mapping

from fatigue.cli.common import as_cli_error, positive_int, render_payload
from fatigue.pipeline import RUN_MODES, run_assessment


def register_subparser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    *,
    config: Mapping[str, Any],
) -> None:
    """Register the ``run`` sub-command."""

    run_cfg = dict(config.get("run", {}))
    default_mode = str(run_cfg.get("mode", "local"))
    if default_mode not in RUN_MODES:
        default_mode = "local"

    parser = subparsers.add_parser(
        "run",
        help="Prepare the fatigue assessment described by a YAML configuration.",
    )
    parser.add_argument(
        "assessment",
        type=Path,
        help="Path to the YAML assessment configuration.",
    )
    parser.add_argument(
        "--mode",
        choices=RUN_MODES,
        default=default_mode,
        help="Execution mode (default: local).",
    )
    parser.add_argument(
        "--workers",
        type=positive_int,
        default=int(run_cfg.get("workers", 1)),
        help="Number of threads per interpolation batch (default: 1).",
    )
    parser.set_defaults(handler=handle)


def handle(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    """Execute the ``run`` command returning the rendered payload."""

    try:
        payload = run_assessment(
            namespace.assessment,
            mode=namespace.mode,
            workers=namespace.workers,
        )
    except (OSError, ValueError) as exc:
        raise as_cli_error(exc, context={"config": str(namespace.assessment)}) from exc
    return render_payload(payload)


__all__ = ["register_subparser", "handle"]
