"""Shared helpers for fatigue command modules."""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

import numpy as np

from fatigue.cli.errors import CliError
from fatigue.core.errors import InterpolationError

__all__ = [
    "CliError",
    "as_cli_error",
    "positive_int",
    "render_payload",
]


def _json_default(value: Any) -> Any:
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    return str(value)


def render_payload(payload: Mapping[str, Any]) -> str:
    """Serialise a command result as indented JSON."""

    return json.dumps(payload, indent=2, default=_json_default)


def as_cli_error(exc: Exception, *, context: Optional[Mapping[str, Any]] = None) -> CliError:
    """Translate a library exception into a :class:`CliError`."""

    details = dict(context or {})
    if isinstance(exc, InterpolationError):
        details.setdefault("kind", exc.kind)
        for key, value in exc.context.items():
            details.setdefault(key, value)
        return CliError(str(exc), category="runtime", context=details)
    if isinstance(exc, FileNotFoundError):
        path = exc.filename if exc.filename is not None else (exc.args[0] if exc.args else "")
        details.setdefault("path", str(path))
        return CliError(f"File not found: {path}", category="not_found", context=details)
    if isinstance(exc, OSError):
        return CliError(str(exc), category="io", context=details)
    return CliError(str(exc), category="usage", context=details)


def positive_int(value: str) -> int:
    """``argparse`` type accepting integers greater than zero."""

    number = int(value)
    if number <= 0:
        raise ValueError(f"expected a positive integer, got {value}")
    return number
