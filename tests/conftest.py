# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Sequence
from pathlib import Path

import pandas as pd
import pytest

from matka_chart.logging.init import reset_logging
from matka_chart.models.config_models import ChartConfig
from matka_chart.models.week_row import WeekRow


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _fresh_logging():
    # handlers bind sys.stdout at setup time; capsys swaps it per test
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
charts:
  kalyan_panel:
    name: Kalyan Chart
    table: kalyan_panel
    days: [Mon, Tue, Wed, Thu, Fri, Sat]
  main_mumbai:
    name: Main Mumbai Chart
    table: main_mumbai
    days: [Mon, Tue, Wed, Thu, Fri]
cache:
  directory: ./cache
  ttl_seconds: 7200
  version: "1.0.1"
search:
  protected_rows: 0
timezone: UTC
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "charts.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def make_chart_workbook(
    directory: Path,
    key: str,
    days: Sequence[str],
    weeks: Sequence[tuple[str, Sequence[str]]],
    title: str = "Chart",
) -> Path:
    """Write ``<directory>/<key>.xlsx``: title row, header row, one row per week.

    ``weeks`` items are ``(date_range, jodis)``; panas are filled with fixed
    three-digit values.
    """
    header = ["Week Date Range"]
    for day in days:
        header.extend([f"{day}_OP", day, f"{day}_CP"])
    rows: list[list[object]] = [[title] + [""] * (len(header) - 1), header]
    for label, jodis in weeks:
        row: list[object] = [label]
        for jodi in jodis:
            row.extend(["123", jodi, "456"])
        rows.append(row)
    path = directory / f"{key}.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Sheet1", header=False, index=False)
    return path


@pytest.fixture()
def chart_workbook(temp_workdir: Path):
    def _make(key: str, days: Sequence[str], weeks: Sequence[tuple[str, Sequence[str]]]) -> Path:
        return make_chart_workbook(temp_workdir / "data", key, days, weeks)
    return _make


def week(label: str, jodis: dict[str, str]) -> WeekRow:
    """WeekRow with only jodis set (panas blank)."""
    return WeekRow.from_record({"Week Date Range": label, **jodis}, list(jodis.keys()))


@pytest.fixture()
def mon_chart() -> ChartConfig:
    return ChartConfig(key="single", name="Single", table="single", days=("Mon",))
