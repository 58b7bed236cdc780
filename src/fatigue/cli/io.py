"""Configuration and numeric table helpers for the fatigue CLI."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import numpy as np

from fatigue.cli.errors import CliError
from fatigue.configuration import iter_unique_paths, load_project_config, pyproject_candidate

__all__ = [
    "CONFIG_ENV_VAR",
    "load_cli_config",
    "load_table",
]

CONFIG_ENV_VAR = "FATIGUE_CONFIG"


def _normalise_cli_config(payload: Mapping[str, Any], source: Path) -> dict[str, Any]:
    data = {str(key): value for key, value in payload.items()}
    data["_config_path"] = str(source.expanduser().resolve())
    return data


def load_cli_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load CLI defaults from ``pyproject.toml`` files.

    ``path`` takes precedence over the ``FATIGUE_CONFIG`` environment
    variable, which takes precedence over the working directory.
    """

    bases: List[Path] = []
    if path is not None:
        bases.append(path)
    env_config = os.environ.get(CONFIG_ENV_VAR)
    if env_config:
        bases.append(Path(env_config))
    bases.append(Path.cwd())

    candidates = [pyproject_candidate(base) for base in bases]
    for candidate in iter_unique_paths(item for item in candidates if item is not None):
        loaded = load_project_config(candidate)
        if loaded is not None:
            payload, resolved = loaded
            return _normalise_cli_config(payload, resolved)

    return {"_config_path": None}


def load_table(
    source: Path,
    *,
    skip_header: int = 0,
    delimiter: Optional[str] = None,
) -> np.ndarray:
    """Read a numeric text table as a two-dimensional float array."""

    if not source.exists():
        raise CliError(
            f"Input file {source} does not exist",
            category="not_found",
            context={"path": str(source)},
        )
    try:
        table = np.loadtxt(
            source,
            dtype=float,
            comments="#",
            delimiter=delimiter,
            skiprows=max(0, int(skip_header)),
            ndmin=2,
        )
    except (OSError, ValueError) as exc:
        raise CliError(
            f"Could not read numeric table {source}: {exc}",
            category="io",
            context={"path": str(source)},
        ) from exc
    return table
