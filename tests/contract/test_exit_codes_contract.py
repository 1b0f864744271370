from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import psycopg2

from conftest import make_chart_workbook
from matka_chart.cli import main as cli_main

"""Exit code contract: 0 all loaded, 1 fatal, 2 partial failure."""

FIVE = ["Mon", "Tue", "Wed", "Thu", "Fri"]
SIX = FIVE + ["Sat"]


def _workbooks(temp_workdir: Path, keys=("kalyan_panel", "main_mumbai")):
    days = {"kalyan_panel": SIX, "main_mumbai": FIVE}
    for key in keys:
        make_chart_workbook(temp_workdir / "data", key, days[key], [("w1", ["38"] * len(days[key]))])


def test_exit_code_fatal_missing_config(temp_workdir: Path, capsys, monkeypatch):
    # temp_workdir has an empty config/ directory
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    code = cli_main([])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_fatal_unknown_chart(write_config, capsys, monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    code = cli_main(["--chart", "nope"])
    assert code == 1
    assert "ERROR unknown chart: nope" in capsys.readouterr().out


def test_exit_code_fatal_bad_arguments(write_config, capsys):
    assert cli_main(["--no-such-flag"]) == 1
    assert cli_main(["--search", "T5"]) == 1
    assert cli_main(["--protected-rows", "-1"]) == 1
    assert cli_main(["--svg-out", "x.svg"]) == 1
    assert "ERROR usage:" in capsys.readouterr().out


def test_exit_code_all_success(temp_workdir: Path, write_config, capsys, monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    _workbooks(temp_workdir)
    code = cli_main(["--no-cache"])
    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY charts=2/2 loaded=2 failed=0 rows=2" in out


def test_exit_code_partial_failure(temp_workdir: Path, write_config, capsys, monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    _workbooks(temp_workdir, keys=("main_mumbai",))
    code = cli_main(["--no-cache"])
    out = capsys.readouterr().out
    assert code == 2
    assert "loaded=1 failed=1" in out
    assert list((temp_workdir / "logs").glob("errors-*.log"))


def test_exit_code_all_failed_is_partial(temp_workdir: Path, write_config, capsys, monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    assert cli_main(["--no-cache"]) == 2


def test_db_connect_failure_falls_back_to_spreadsheet(temp_workdir: Path, write_config, capsys, monkeypatch):
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    _workbooks(temp_workdir)
    with patch("matka_chart.cli.__main__.psycopg2.connect", side_effect=psycopg2.OperationalError("refused")):
        code = cli_main(["--no-cache"])
    out = capsys.readouterr().out
    assert code == 0
    assert "INFO DB connection failed -> fallback to spreadsheet source" in out
    assert "mode=spreadsheet" in out
