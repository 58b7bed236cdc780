"""Logging utilities for fatigue."""

from fatigue.logging.config import JsonFormatter, setup_logging

__all__ = ["JsonFormatter", "setup_logging"]
