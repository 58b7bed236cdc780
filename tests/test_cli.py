from __future__ import annotations

import json
from pathlib import Path

import pytest

from fatigue._version import __version__
from fatigue.cli.errors import CliError, build_error_payload, log_cli_error

from tests.conftest import write_pyproject
from tests.helpers import INTERPOLATION_NAME, run_cli_in_tmp, write_assessment, write_table


def test_rainflow_command_reports_reference_cycles(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, reference_history: list[float]
) -> None:
    write_table(
        tmp_path / "history.txt",
        [(index, value) for index, value in enumerate(reference_history)],
        header="# time stress",
    )

    output = run_cli_in_tmp(
        ["rainflow", "history.txt", "--column", "1", "--bins", "2"],
        tmp_path=tmp_path,
        monkeypatch=monkeypatch,
    )
    payload = json.loads(output)

    assert payload["samples"] == 9
    assert payload["reversals"] == 9
    assert payload["total_cycles"] == pytest.approx(4.0)
    assert [cycle["range"] for cycle in payload["cycles"]] == [3.0, 4.0, 4.0, 8.0, 9.0, 8.0, 6.0]
    assert payload["histogram"]["counts"] == [2.0, 2.0]
    assert payload["histogram"]["edges"] == [3.0, 6.0, 9.0]


def test_rainflow_command_skip_header(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "history.txt").write_text("time,stress\n0,0\n1,4\n2,1\n", encoding="utf8")

    payload = json.loads(
        run_cli_in_tmp(
            ["rainflow", "history.txt", "--column", "1", "--skip-header", "1", "--delimiter", ","],
            tmp_path=tmp_path,
            monkeypatch=monkeypatch,
        )
    )

    assert payload["cycles"] == [
        {"mean": 2.0, "range": 4.0, "count": 0.5},
        {"mean": 2.5, "range": 3.0, "count": 0.5},
    ]
    assert "histogram" not in payload


def test_rainflow_command_monotonic_history(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    write_table(tmp_path / "ramp.txt", [(value,) for value in range(5)])

    payload = json.loads(
        run_cli_in_tmp(["rainflow", "ramp.txt"], tmp_path=tmp_path, monkeypatch=monkeypatch)
    )

    assert payload["cycles"] == []
    assert payload["total_cycles"] == 0


@pytest.mark.parametrize(
    ("args", "status"),
    [
        pytest.param(["rainflow", "missing.txt"], 4, id="missing-file"),
        pytest.param(["rainflow", "history.txt", "--column", "5"], 2, id="bad-column"),
        pytest.param(["rainflow", "words.txt"], 3, id="unreadable-table"),
        pytest.param(["rainflow", "nan.txt"], 2, id="non-finite"),
    ],
)
def test_rainflow_command_errors(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    args: list[str],
    status: int,
) -> None:
    write_table(tmp_path / "history.txt", [(0.0,), (1.0,), (0.0,)])
    (tmp_path / "words.txt").write_text("alpha beta\n", encoding="utf8")
    (tmp_path / "nan.txt").write_text("0\nnan\n1\n", encoding="utf8")

    with pytest.raises(SystemExit) as excinfo:
        run_cli_in_tmp(args, tmp_path=tmp_path, monkeypatch=monkeypatch)

    assert excinfo.value.code == status
    assert capsys.readouterr().out.strip()


def test_interpolate_command_linear(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    write_table(tmp_path / "points.txt", [(x, 2.0 * x) for x in (1.0, 2.0, 3.0, 4.0, 5.0)])
    write_table(tmp_path / "targets.txt", [(6.0,), (0.0,), (2.5,)])

    payload = json.loads(
        run_cli_in_tmp(
            ["interpolate", "points.txt", "targets.txt", "--workers", "2"],
            tmp_path=tmp_path,
            monkeypatch=monkeypatch,
        )
    )

    assert payload["method"] == "linear"
    assert payload["points"] == 5
    assert payload["targets"] == 3
    assert payload["values"] == pytest.approx([12.0, 0.0, 5.0], abs=1e-5)


def test_interpolate_command_nearest_with_tolerance(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    write_table(
        tmp_path / "points.txt",
        [(0.0, 0.0, 1.0), (0.001, 0.0, 5.0), (10.0, 0.0, 2.0)],
    )
    write_table(tmp_path / "targets.txt", [(1.0, 0.0), (9.0, 0.0)])

    payload = json.loads(
        run_cli_in_tmp(
            ["interpolate", "points.txt", "targets.txt", "--method", "nearest", "--tolerance", "0.01"],
            tmp_path=tmp_path,
            monkeypatch=monkeypatch,
        )
    )

    assert payload["method"] == "nearest_neighbor"
    assert payload["points"] == 2
    assert payload["values"] == [5.0, 2.0]


@pytest.mark.parametrize(
    ("points", "targets", "status"),
    [
        pytest.param([(1.0, 1.0)], [(2.0,)], 1, id="insufficient-points"),
        pytest.param([(0.0, 0.0), (1.0, 1.0)], [(2.0, 3.0)], 1, id="dimension-mismatch"),
        pytest.param([(1.0,), (2.0,)], [(2.0,)], 2, id="value-column-missing"),
    ],
)
def test_interpolate_command_errors(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    points: list[tuple[float, ...]],
    targets: list[tuple[float, ...]],
    status: int,
) -> None:
    write_table(tmp_path / "points.txt", points)
    write_table(tmp_path / "targets.txt", targets)

    with pytest.raises(SystemExit) as excinfo:
        run_cli_in_tmp(["interpolate", "points.txt", "targets.txt"], tmp_path=tmp_path, monkeypatch=monkeypatch)

    assert excinfo.value.code == status


def test_interpolate_defaults_come_from_pyproject(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    write_pyproject(
        tmp_path,
        """
        [tool.fatigue.interpolate]
        method = "nearest_neighbor"
        """,
    )
    write_table(tmp_path / "points.txt", [(0.0, 1.0), (10.0, 2.0)])
    write_table(tmp_path / "targets.txt", [(4.0,)])

    payload = json.loads(
        run_cli_in_tmp(["interpolate", "points.txt", "targets.txt"], tmp_path=tmp_path, monkeypatch=monkeypatch)
    )

    assert payload["method"] == "nearest_neighbor"
    assert payload["values"] == [1.0]


def test_run_command(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    write_assessment(tmp_path, method="VONMISES")

    payload = json.loads(
        run_cli_in_tmp(
            ["--log-level", "warning", "run", "assessment.yaml", "--mode", "local"],
            tmp_path=tmp_path,
            monkeypatch=monkeypatch,
        )
    )

    assert payload["mode"] == "local"
    assert payload["channels"] == 2
    assert payload["interpolations"][0]["name"] == INTERPOLATION_NAME
    assert payload["expressions"]["product"] == 15.0


@pytest.mark.parametrize(
    ("setup", "status"),
    [
        pytest.param("missing", 4, id="missing-config"),
        pytest.param("invalid", 2, id="invalid-config"),
        pytest.param("missing-stress-file", 4, id="missing-stress-file"),
    ],
)
def test_run_command_errors(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, setup: str, status: int
) -> None:
    if setup == "invalid":
        (tmp_path / "assessment.yaml").write_text("solution: {}\n", encoding="utf8")
    elif setup == "missing-stress-file":
        write_assessment(tmp_path)
        (tmp_path / "stressfile" / "FX1FY0FZ0.usf").unlink()

    with pytest.raises(SystemExit) as excinfo:
        run_cli_in_tmp(["run", "assessment.yaml"], tmp_path=tmp_path, monkeypatch=monkeypatch)

    assert excinfo.value.code == status


def test_run_command_rejects_unknown_mode(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(SystemExit) as excinfo:
        run_cli_in_tmp(["run", "assessment.yaml", "--mode", "batch"], tmp_path=tmp_path, monkeypatch=monkeypatch)

    assert excinfo.value.code == 2


def test_errors_are_logged_as_json(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit):
        run_cli_in_tmp(
            ["--log-format", "json", "rainflow", "missing.txt"],
            tmp_path=tmp_path,
            monkeypatch=monkeypatch,
        )

    captured = capsys.readouterr()
    record = json.loads(captured.err.strip().splitlines()[-1])
    assert record["event"] == "cli.error"
    assert record["category"] == "not_found"
    assert record["status_code"] == 4
    assert "missing.txt" in captured.out


def test_log_output_to_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    write_assessment(tmp_path)

    run_cli_in_tmp(
        ["--log-output", "run.log", "run", "assessment.yaml"],
        tmp_path=tmp_path,
        monkeypatch=monkeypatch,
    )

    events = [json.loads(line)["event"] for line in (tmp_path / "run.log").read_text(encoding="utf8").splitlines()]
    assert "pipeline.complete" in events


def test_command_is_required(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(SystemExit) as excinfo:
        run_cli_in_tmp([], tmp_path=tmp_path, monkeypatch=monkeypatch)

    assert excinfo.value.code == 2


def test_version_flag(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        run_cli_in_tmp(["--version"], tmp_path=tmp_path, monkeypatch=monkeypatch)

    assert excinfo.value.code == 0
    assert __version__ in capsys.readouterr().out


@pytest.mark.parametrize(
    ("category", "status"),
    [("runtime", 1), ("usage", 2), ("io", 3), ("not_found", 4), ("unknown", 1)],
)
def test_error_categories_map_to_status_codes(category: str, status: int) -> None:
    error = CliError("failure", category=category, context={"path": Path("x"), "count": 2})

    assert error.status_code == status
    assert error.context == {"path": "x", "count": 2}
    assert error.payload.as_dict()["category"] == category


def test_log_cli_error_uses_structured_extra(caplog: pytest.LogCaptureFixture) -> None:
    payload = build_error_payload("broken", category="io", context={"path": "a.txt"})

    with caplog.at_level("ERROR", logger="fatigue.cli"):
        log_cli_error(payload)

    (record,) = caplog.records
    assert record.event == "cli.error"
    assert record.status_code == 3
    assert record.context == {"path": "a.txt"}


@pytest.mark.parametrize(
    ("configured", "expected_method", "expected_value"),
    [
        pytest.param("NONE", "nearest_neighbor", 2.0, id="none-alias"),
        pytest.param("nearest_neighbour", "nearest_neighbor", 2.0, id="british-spelling"),
        pytest.param("LINEAR", "linear", 1.9, id="upper-case"),
    ],
)
def test_interpolate_configured_method_aliases(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    configured: str,
    expected_method: str,
    expected_value: float,
) -> None:
    write_pyproject(
        tmp_path,
        f"""
        [tool.fatigue.interpolate]
        method = "{configured}"
        """,
    )
    write_table(tmp_path / "points.txt", [(0.0, 1.0), (10.0, 2.0)])
    write_table(tmp_path / "targets.txt", [(9.0,)])

    payload = json.loads(
        run_cli_in_tmp(["interpolate", "points.txt", "targets.txt"], tmp_path=tmp_path, monkeypatch=monkeypatch)
    )

    assert payload["method"] == expected_method
    assert payload["values"] == pytest.approx([expected_value])


def test_interpolate_method_flag_accepts_aliases(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    write_table(tmp_path / "points.txt", [(0.0, 1.0), (10.0, 2.0)])
    write_table(tmp_path / "targets.txt", [(9.0,)])

    payload = json.loads(
        run_cli_in_tmp(
            ["interpolate", "points.txt", "targets.txt", "--method", "NONE"],
            tmp_path=tmp_path,
            monkeypatch=monkeypatch,
        )
    )

    assert payload["method"] == "nearest_neighbor"
    assert payload["values"] == [2.0]


@pytest.mark.parametrize(
    ("args", "configured"),
    [
        pytest.param(["--method", "cubic"], None, id="unknown-flag"),
        pytest.param([], "cubic", id="unknown-configured"),
    ],
)
def test_interpolate_unknown_method_is_usage_error(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    args: list[str],
    configured: str | None,
) -> None:
    if configured is not None:
        write_pyproject(
            tmp_path,
            f"""
            [tool.fatigue.interpolate]
            method = "{configured}"
            """,
        )
    write_table(tmp_path / "points.txt", [(0.0, 1.0), (10.0, 2.0)])
    write_table(tmp_path / "targets.txt", [(9.0,)])

    with pytest.raises(SystemExit) as excinfo:
        run_cli_in_tmp(["interpolate", "points.txt", "targets.txt", *args], tmp_path=tmp_path, monkeypatch=monkeypatch)

    captured = capsys.readouterr()
    assert excinfo.value.code == 2
    assert "cubic" in captured.out + captured.err


def test_interpolate_tiny_tolerance_with_large_coordinates(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    write_table(tmp_path / "points.txt", [(0.0, 1.0), (1e9, 2.0)])
    write_table(tmp_path / "targets.txt", [(5e8,)])

    payload = json.loads(
        run_cli_in_tmp(
            ["interpolate", "points.txt", "targets.txt", "--tolerance", "1e-300"],
            tmp_path=tmp_path,
            monkeypatch=monkeypatch,
        )
    )

    assert payload["points"] == 2
    assert payload["values"] == pytest.approx([1.5])
