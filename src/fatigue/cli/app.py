"""Command line application entry point for fatigue."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from fatigue.cli.errors import CliError, log_cli_error
from fatigue.cli.io import load_cli_config
from fatigue.cli.parser import build_parser
from fatigue.logging.config import setup_logging


def _preliminary_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument(
        "--config",
        dest="config_path",
        type=Path,
        default=None,
        help="Path to the pyproject.toml holding [tool.fatigue] defaults.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=None,
        help="Logging level (default: info).",
    )
    parser.add_argument(
        "--log-output",
        dest="log_output",
        default=None,
        help="Logging destination (stdout, stderr or a file path).",
    )
    parser.add_argument(
        "--log-format",
        dest="log_format",
        choices=("json", "text"),
        default=None,
        help="Logging formatter (json or text).",
    )
    return parser


def _write(message: str) -> None:
    sys.stdout.write(message)
    if not message.endswith("\n"):
        sys.stdout.write("\n")


def _logging_section(
    preliminary: argparse.Namespace, config: Mapping[str, Any]
) -> dict[str, Any]:
    """Merge command line logging flags over the project defaults."""

    section = {"level": "info", "output": "stderr", "format": "json"}
    section.update(config.get("logging", {}))
    overrides = {
        "level": preliminary.log_level,
        "output": preliminary.log_output,
        "format": preliminary.log_format,
    }
    section.update({key: value for key, value in overrides.items() if value is not None})
    return section


def run_cli(args: Optional[Sequence[str]] = None) -> str:
    """Execute the fatigue command line interface."""

    preliminary, remaining = _preliminary_parser().parse_known_args(args)

    config = load_cli_config(preliminary.config_path)
    config["logging"] = _logging_section(preliminary, config)
    try:
        setup_logging(config)
    except ValueError as exc:
        _write(str(exc))
        raise SystemExit(2) from exc

    namespace = build_parser(config).parse_args(list(remaining), namespace=preliminary)
    namespace.config = config

    try:
        result = namespace.handler(namespace, config=config)
    except CliError as exc:
        if not exc.logged:
            log_cli_error(exc.payload, exc_info=exc)
            exc.logged = True
        if exc.payload.message:
            _write(exc.payload.message)
        raise SystemExit(exc.status_code) from exc
    if result:
        _write(result)
    return result


def main() -> None:  # pragma: no cover - thin wrapper
    run_cli()


if __name__ == "__main__":  # pragma: no cover - CLI invocation guard
    main()
