from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

"""Pattern-group extraction for matrices returned by the pattern service.

Cells that belong to a matched pattern carry a ``+<digits><letters>ap``
label (``"38+fap"``, ``"5+4ap"``). Groups collect the labelled cells per
pattern type in row-major order; consecutive cells of a group are joined by
connectors which a renderer turns into arcs (same row) or straight lines.
"""

__all__ = [
    "PALETTE",
    "CellPosition",
    "ConnectorKind",
    "Connector",
    "pattern_type",
    "clean_cell",
    "find_pattern_groups",
    "assign_colors",
    "connectors",
]

PALETTE = (
    "#ef4444", "#3b82f6", "#10b981", "#f59e0b",
    "#8b5cf6", "#ec4899", "#14b8a6", "#f97316",
)

_LABEL = re.compile(r"\+(\d*[a-z]*ap)", re.IGNORECASE)
_LABEL_STRIP = re.compile(r"\+[0-9a-zA-Z]+ap")


@dataclass(frozen=True)
class CellPosition:
    row: int
    col: int
    cell: str


class ConnectorKind(Enum):
    ARC = "arc"
    LINE = "line"


@dataclass(frozen=True)
class Connector:
    pattern: str
    kind: ConnectorKind
    start: CellPosition
    end: CellPosition
    color: str


def pattern_type(cell: Any) -> str | None:
    if not isinstance(cell, str) or not cell:
        return None
    m = _LABEL.search(cell)
    return m.group(1) if m else None


def clean_cell(cell: Any) -> str:
    if cell is None:
        return ""
    return _LABEL_STRIP.sub("", str(cell))


def find_pattern_groups(matrix: Sequence[Sequence[Any]]) -> dict[str, list[CellPosition]]:
    groups: dict[str, list[CellPosition]] = {}
    for r, row in enumerate(matrix):
        for c, cell in enumerate(row):
            ptype = pattern_type(cell)
            if ptype is None:
                continue
            groups.setdefault(ptype, []).append(CellPosition(row=r, col=c, cell=str(cell)))
    return groups


def assign_colors(groups: dict[str, list[CellPosition]]) -> dict[str, str]:
    return {ptype: PALETTE[idx % len(PALETTE)] for idx, ptype in enumerate(groups)}


def connectors(groups: dict[str, list[CellPosition]]) -> list[Connector]:
    colors = assign_colors(groups)
    out: list[Connector] = []
    for ptype, positions in groups.items():
        for start, end in zip(positions, positions[1:]):
            kind = ConnectorKind.ARC if start.row == end.row else ConnectorKind.LINE
            out.append(Connector(pattern=ptype, kind=kind, start=start, end=end, color=colors[ptype]))
    return out
