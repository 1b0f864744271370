from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

"""Spreadsheet chart source.

Layout of a chart workbook (``<source_directory>/<chart key>.xlsx``):
- row 1: title (ignored)
- row 2: header (``Week Date Range``, ``Mon_OP``, ``Mon``, ``Mon_CP`` ...)
- row 3+: one week per row, oldest first

All cells are read as text so pana values like ``"000"`` and jodi values
like ``"05"`` keep their leading zeros.
"""


class SheetHeaderError(Exception):
    """Raised when header row (2nd line) is missing or invalid."""

class MissingColumnsError(Exception):
    """Raised when expected columns are missing in sheet header."""

@dataclass
class SheetData:
    sheet_name: str
    columns: list[str]
    rows: list[dict[str, Any]]  # column name -> cell text (None for blanks)


def chart_workbook_path(source_directory: str | Path, chart_key: str) -> Path:
    return Path(source_directory) / f"{chart_key}.xlsx"


def read_excel_file(path: Path, target_sheets: Iterable[str] | None = None) -> dict[str, pd.DataFrame]:
    """Read a workbook returning raw DataFrames keyed by sheet name.

    Parameters
    ----------
    path: workbook path
    target_sheets: restrict to these sheet names (None = all sheets)
    """
    dfs: dict[str, pd.DataFrame] = {}
    xls = pd.ExcelFile(path)
    for name in xls.sheet_names:
        if target_sheets is not None and str(name) not in target_sheets:
            continue
        # no header here; the second row is applied in normalize_sheet
        df = xls.parse(name, header=None, dtype=str, keep_default_na=False, na_values=[""])
        dfs[str(name)] = df
    return dfs


def normalize_sheet(
    df: pd.DataFrame,
    sheet_name: str,
    expected_columns: set[str] | None = None,
) -> SheetData:
    """Normalize a raw DataFrame using second row as header.

    Steps:
    1. Validate at least 2 rows exist (1: title, 2: header)
    2. Extract header from second row (index=1)
    3. Remaining rows (index>=2) become data rows; fully blank rows are dropped
    4. Validate expected columns subset
    """
    if df.shape[0] < 2:
        raise SheetHeaderError(f"sheet '{sheet_name}' lacks second row header")
    columns = [str(c).strip() for c in df.iloc[1].tolist()]

    if expected_columns is not None:
        missing = expected_columns - set(columns)
        if missing:
            raise MissingColumnsError(f"sheet '{sheet_name}' missing columns: {sorted(missing)}")

    rows: list[dict[str, Any]] = []
    for _, raw in df.iloc[2:].iterrows():
        if raw.isna().all():
            continue
        row_dict: dict[str, Any] = {}
        for col, val in zip(columns, raw.tolist(), strict=False):
            if pd.isna(val):
                row_dict[col] = None
            else:
                row_dict[col] = str(val).strip()
        rows.append(row_dict)

    return SheetData(sheet_name=sheet_name, columns=columns, rows=rows)


def read_chart_workbook(path: Path, expected_columns: set[str] | None = None) -> SheetData:
    """Read the first sheet of a chart workbook as normalized records."""
    raw = read_excel_file(path)
    if not raw:
        raise SheetHeaderError(f"workbook '{path.name}' has no sheets")
    sheet_name, df = next(iter(raw.items()))
    return normalize_sheet(df, sheet_name, expected_columns=expected_columns)
