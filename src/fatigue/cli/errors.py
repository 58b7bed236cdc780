"""Failure reporting for the ``fatigue`` command line.

Every failure carries a category that decides the process exit status:

========== ======
category   status
========== ======
runtime    1
usage      2
io         3
not_found  4
========== ======
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

__all__ = [
    "EXIT_STATUS",
    "CliError",
    "ErrorPayload",
    "build_error_payload",
    "log_cli_error",
]

EXIT_STATUS: Mapping[str, int] = {
    "runtime": 1,
    "usage": 2,
    "io": 3,
    "not_found": 4,
}

_FALLBACK_CATEGORY = "runtime"

_LOGGER = logging.getLogger("fatigue.cli")


def _scalar(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


@dataclass(frozen=True, slots=True)
class ErrorPayload:
    """What the CLI logs and prints when a command fails."""

    status_code: int
    category: str
    message: str
    context: Mapping[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "status_code": self.status_code,
            "category": self.category,
            "message": self.message,
            "context": dict(self.context),
        }


def build_error_payload(
    message: str,
    *,
    category: str = _FALLBACK_CATEGORY,
    status_code: Optional[int] = None,
    context: Optional[Mapping[str, Any]] = None,
) -> ErrorPayload:
    """Create an :class:`ErrorPayload` with JSON-safe context values.

    Categories missing from :data:`EXIT_STATUS` exit like ``runtime``.
    """

    category = category or _FALLBACK_CATEGORY
    if status_code is None:
        status_code = EXIT_STATUS.get(category, EXIT_STATUS[_FALLBACK_CATEGORY])
    details = {str(key): _scalar(value) for key, value in (context or {}).items()}
    return ErrorPayload(status_code, category, message, details)


def log_cli_error(
    payload: ErrorPayload,
    *,
    logger: Optional[logging.Logger] = None,
    exc_info: Optional[BaseException] = None,
) -> None:
    """Log ``payload`` at error level as a ``cli.error`` event."""

    target = logger if logger is not None else _LOGGER
    target.error(
        payload.message,
        extra={
            "event": "cli.error",
            "category": payload.category,
            "status_code": payload.status_code,
            "context": dict(payload.context),
        },
        exc_info=exc_info,
    )


class CliError(RuntimeError):
    """Raised by command handlers; :func:`fatigue.cli.app.run_cli` turns it into an exit."""

    def __init__(
        self,
        message: str,
        *,
        category: str = _FALLBACK_CATEGORY,
        status_code: Optional[int] = None,
        context: Optional[Mapping[str, Any]] = None,
        logged: bool = False,
    ) -> None:
        super().__init__(message)
        self.payload = build_error_payload(
            message, category=category, status_code=status_code, context=context
        )
        self.logged = logged

    @property
    def category(self) -> str:
        return self.payload.category

    @property
    def status_code(self) -> int:
        return self.payload.status_code

    @property
    def context(self) -> dict[str, Any]:
        return dict(self.payload.context)
