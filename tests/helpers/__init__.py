"""Convenience re-exports for test helpers."""

from __future__ import annotations

from tests.helpers.assessment import (
    INTERPOLATION_NAME,
    write_assessment,
    write_stress_file,
)
from tests.helpers.cli import run_cli_in_tmp, write_table

__all__ = [
    "INTERPOLATION_NAME",
    "run_cli_in_tmp",
    "write_assessment",
    "write_stress_file",
    "write_table",
]
