from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

"""WeekRow model: one week of a chart table.

Chart tables store one record per week with a date-range label and three
fields per weekday (open pana, jodi, close pana). Records arrive either as
column-keyed mappings from the relational store / spreadsheets, or as flat
matrix rows ``[label, op, jodi, cp, op, jodi, cp, ...]`` from the pattern
service. Both are converted here so the engine never sees untyped maps.
"""

__all__ = [
    "DATE_RANGE_COLUMN",
    "ALL_DAYS",
    "DayCell",
    "WeekRow",
    "cell_text",
    "day_columns",
    "days_for_matrix_width",
]

DATE_RANGE_COLUMN = "Week Date Range"
ALL_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

# matrix width (label + 3 per day) -> weekday list
_MATRIX_WIDTH_DAYS = {
    16: ALL_DAYS[:5],
    19: ALL_DAYS[:6],
    22: ALL_DAYS[:7],
}


def cell_text(value: Any) -> str:
    """Render a raw storage value as trimmed text ("" for missing)."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            value = int(value)
    text = str(value).strip()
    if text == "None":
        return ""
    return text


def day_columns(day: str) -> tuple[str, str, str]:
    """Storage column names (open, jodi, close) for a weekday."""
    return (f"{day}_OP", day, f"{day}_CP")


def days_for_matrix_width(width: int) -> tuple[str, ...]:
    """Infer the weekday list from a flat matrix row width (empty if unknown)."""
    return _MATRIX_WIDTH_DAYS.get(width, ())


@dataclass(frozen=True)
class DayCell:
    open_pana: str = ""
    jodi: str = ""
    close_pana: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.open_pana or self.jodi or self.close_pana)


@dataclass(frozen=True)
class WeekRow:
    """One week of chart data.

    ``cells`` keeps the chart's weekday order; days missing from the source
    are stored as empty DayCells so every configured day is addressable.
    """
    date_range: str
    cells: dict[str, DayCell] = field(default_factory=dict)

    @property
    def days(self) -> tuple[str, ...]:
        return tuple(self.cells.keys())

    def cell(self, day: str) -> DayCell:
        return self.cells.get(day, DayCell())

    def jodi(self, day: str) -> str:
        return self.cell(day).jodi

    @classmethod
    def from_record(cls, record: Mapping[str, Any], days: Sequence[str]) -> WeekRow:
        """Build a WeekRow from a column-keyed record (``Mon``, ``Mon_OP`` ...)."""
        cells: dict[str, DayCell] = {}
        for day in days:
            op_col, jodi_col, cp_col = day_columns(day)
            cells[day] = DayCell(
                open_pana=cell_text(record.get(op_col)),
                jodi=cell_text(record.get(jodi_col)),
                close_pana=cell_text(record.get(cp_col)),
            )
        return cls(date_range=cell_text(record.get(DATE_RANGE_COLUMN)), cells=cells)

    @classmethod
    def from_matrix_row(cls, row: Sequence[Any], days: Sequence[str]) -> WeekRow:
        """Build a WeekRow from a flat ``[label, op, jodi, cp, ...]`` row.

        Short rows are padded with empty cells.
        """
        values = [cell_text(v) for v in row]
        needed = 1 + 3 * len(days)
        if len(values) < needed:
            values.extend([""] * (needed - len(values)))
        cells: dict[str, DayCell] = {}
        for idx, day in enumerate(days):
            base = 1 + idx * 3
            cells[day] = DayCell(
                open_pana=values[base],
                jodi=values[base + 1],
                close_pana=values[base + 2],
            )
        return cls(date_range=values[0], cells=cells)

    def to_matrix_row(self) -> list[str]:
        out = [self.date_range]
        for cell in self.cells.values():
            out.extend([cell.open_pana, cell.jodi, cell.close_pana])
        return out

    def to_record(self) -> dict[str, str]:
        record = {DATE_RANGE_COLUMN: self.date_range}
        for day, cell in self.cells.items():
            op_col, jodi_col, cp_col = day_columns(day)
            record[op_col] = cell.open_pana
            record[jodi_col] = cell.jodi
            record[cp_col] = cell.close_pana
        return record
