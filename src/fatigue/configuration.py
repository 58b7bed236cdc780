"""Discovery of the ``[tool.fatigue]`` table in ``pyproject.toml`` files."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python < 3.11 fallback
    import tomli as tomllib  # type: ignore

PYPROJECT_FILENAME = "pyproject.toml"
TOOL_TABLE = ("tool", "fatigue")


def _plain(value: Any) -> Any:
    # tomllib already yields dicts and lists, this only detaches nested tables.
    if isinstance(value, Mapping):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def pyproject_candidate(base: Path) -> Path | None:
    """Map ``base`` to the ``pyproject.toml`` it designates.

    A path named ``pyproject.toml`` is returned unchanged, a path without a
    suffix is treated as a directory, and any other file yields ``None``.
    """

    base = base.expanduser()
    if base.name == PYPROJECT_FILENAME:
        return base
    if base.suffix:
        return None
    return base / PYPROJECT_FILENAME


def iter_unique_paths(paths: Iterable[Path]) -> list[Path]:
    """Resolve ``paths`` and drop repeats, keeping first occurrences."""

    unique: dict[Path, None] = {}
    for path in paths:
        unique.setdefault(path.expanduser().resolve(strict=False), None)
    return list(unique)


def _tool_table(document: Mapping[str, Any]) -> Mapping[str, Any] | None:
    table: Any = document
    for name in TOOL_TABLE:
        if not isinstance(table, Mapping):
            return None
        table = table.get(name)
    return table if isinstance(table, Mapping) else None


def load_project_config(path: Path) -> tuple[dict[str, Any], Path] | None:
    """Load the ``[tool.fatigue]`` table from ``pyproject.toml``.

    ``path`` may name the file itself or the directory holding it.  ``None``
    is returned when the file or the table is absent.
    """

    candidate = pyproject_candidate(path)
    if candidate is None:
        return None
    source = candidate.resolve(strict=False)
    if not source.is_file():
        return None

    with source.open("rb") as handle:
        document = tomllib.load(handle)
    table = _tool_table(document)
    if table is None:
        return None
    return _plain(table), source


__all__ = [
    "PYPROJECT_FILENAME",
    "iter_unique_paths",
    "load_project_config",
    "pyproject_candidate",
]
