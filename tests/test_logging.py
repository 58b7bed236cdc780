from __future__ import annotations

import io
import json
import logging
import sys
from pathlib import Path

import pytest

from fatigue.logging import JsonFormatter, setup_logging


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="fatigue.core.rainflow",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Counted %d cycles",
        args=(3,),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields() -> None:
    payload = json.loads(JsonFormatter().format(_record(event="rainflow.count", cycles=3)))

    assert payload["message"] == "Counted 3 cycles"
    assert payload["level"] == "info"
    assert payload["logger"] == "fatigue.core.rainflow"
    assert payload["event"] == "rainflow.count"
    assert payload["cycles"] == 3
    assert "timestamp" in payload
    assert "args" not in payload


def test_json_formatter_serialises_unknown_objects() -> None:
    payload = json.loads(JsonFormatter().format(_record(path=Path("a") / "b")))

    assert payload["path"] == str(Path("a") / "b")


def test_json_formatter_renders_exceptions() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record()
        record.exc_info = sys.exc_info()

    payload = json.loads(JsonFormatter().format(record))

    assert "RuntimeError: boom" in payload["exc_info"]


def test_setup_logging_writes_json_to_file(tmp_path: Path) -> None:
    destination = tmp_path / "logs" / "fatigue.log"

    logger = setup_logging({"logging": {"level": "debug", "output": str(destination), "format": "json"}})
    logging.getLogger("fatigue.pipeline").debug("prepared", extra={"event": "pipeline.test"})
    for handler in logger.handlers:
        handler.flush()

    lines = destination.read_text(encoding="utf8").splitlines()
    assert json.loads(lines[-1])["event"] == "pipeline.test"
    assert logger.level == logging.DEBUG
    assert logger.propagate is False


def test_setup_logging_replaces_previous_handler(capsys: pytest.CaptureFixture[str]) -> None:
    setup_logging({"logging": {"output": "stdout", "format": "text"}})
    logger = setup_logging({"logging": {"output": "stderr", "format": "text", "level": "warning"}})

    installed = [handler for handler in logger.handlers if getattr(handler, "_fatigue_handler", False)]
    assert len(installed) == 1

    logging.getLogger("fatigue.cli").info("hidden")
    logging.getLogger("fatigue.cli").warning("shown")
    captured = capsys.readouterr()
    assert "shown" in captured.err
    assert "hidden" not in captured.err
    assert captured.out == ""


def test_setup_logging_defaults_to_info_json_on_stderr() -> None:
    logger = setup_logging()

    (handler,) = [handler for handler in logger.handlers if getattr(handler, "_fatigue_handler", False)]
    assert isinstance(handler.formatter, JsonFormatter)
    assert isinstance(handler, logging.StreamHandler)
    assert logger.level == logging.INFO


@pytest.mark.parametrize(
    "section",
    [
        {"level": "chatty"},
        {"format": "xml"},
    ],
)
def test_setup_logging_rejects_unknown_options(section: dict[str, str]) -> None:
    with pytest.raises(ValueError):
        setup_logging({"logging": section})


def test_text_formatter_output() -> None:
    stream = io.StringIO()
    logger = setup_logging({"logging": {"format": "text"}})
    (handler,) = [handler for handler in logger.handlers if getattr(handler, "_fatigue_handler", False)]
    handler.setStream(stream)

    logging.getLogger("fatigue.stress").warning("plain message")

    assert "WARNING fatigue.stress: plain message" in stream.getvalue()
