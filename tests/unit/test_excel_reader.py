from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from conftest import make_chart_workbook
from matka_chart.excel.reader import (
    MissingColumnsError,
    SheetHeaderError,
    chart_workbook_path,
    normalize_sheet,
    read_chart_workbook,
    read_excel_file,
)


def _make_excel(tmp_path: Path, name: str, sheets: dict[str, list[list[object]]]) -> Path:
    p = tmp_path / name
    with pd.ExcelWriter(p, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return p


def test_chart_workbook_path():
    assert chart_workbook_path("./data", "kalyan_panel") == Path("data/kalyan_panel.xlsx")


def test_read_chart_workbook_keeps_leading_zeros(temp_workdir: Path):
    path = make_chart_workbook(
        temp_workdir / "data", "k", ["Mon", "Tue"],
        [("01/01 to 07/01", ["05", "38"]), ("08/01 to 14/01", ["00", "**"])],
    )
    sheet = read_chart_workbook(path, expected_columns={"Week Date Range", "Mon", "Tue_CP"})
    assert sheet.columns == ["Week Date Range", "Mon_OP", "Mon", "Mon_CP", "Tue_OP", "Tue", "Tue_CP"]
    assert [r["Mon"] for r in sheet.rows] == ["05", "00"]
    assert sheet.rows[1]["Tue"] == "**"
    assert sheet.rows[0]["Mon_OP"] == "123"


def test_blank_cells_become_none_and_blank_rows_dropped(temp_workdir: Path):
    path = _make_excel(
        temp_workdir, "k.xlsx",
        {
            "Sheet1": [
                ["Title", None, None],
                ["Week Date Range", "Mon_OP", "Mon"],
                ["w1", None, "38"],
                [None, None, None],
                ["w2", "123", "12"],
            ]
        },
    )
    sheet = read_chart_workbook(path)
    assert len(sheet.rows) == 2
    assert sheet.rows[0]["Mon_OP"] is None


def test_normalize_missing_header_row(temp_workdir: Path):
    excel = _make_excel(temp_workdir, "bad.xlsx", {"Sheet1": [["Only title"]]})
    dfs = read_excel_file(excel)
    with pytest.raises(SheetHeaderError):
        normalize_sheet(dfs["Sheet1"], "Sheet1")


def test_missing_columns(temp_workdir: Path):
    path = make_chart_workbook(temp_workdir / "data", "k", ["Mon"], [("w1", ["38"])])
    with pytest.raises(MissingColumnsError, match="Tue"):
        read_chart_workbook(path, expected_columns={"Mon", "Tue"})


def test_target_sheets_filter(temp_workdir: Path):
    excel = _make_excel(temp_workdir, "two.xlsx", {"A": [["t"], ["h"]], "B": [["t"], ["h"]]})
    assert list(read_excel_file(excel, target_sheets=["B"])) == ["B"]
