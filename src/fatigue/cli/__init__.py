"""Command line utilities for fatigue."""

from fatigue.cli.app import main, run_cli

__all__ = ["main", "run_cli"]
