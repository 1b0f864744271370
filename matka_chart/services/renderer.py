from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from xml.sax.saxutils import escape

from ..engine.digits import decompose, is_special, pad_jodi, split_date_range, split_pana
from ..engine.groups import ConnectorKind, assign_colors, clean_cell, connectors, find_pattern_groups, pattern_type
from ..models.chart_result import ChartData, SearchResult

"""Presentation of engine output.

Nothing here computes matches; it only consumes ChartData / SearchResult and
the pattern groups from matka_chart.engine.groups.

Text layout of one day cell: ``OPN t/JJ/b CPN`` where t and b are the top
and bottom digits. Special jodis are suffixed with ``!``; cells of the
current match are wrapped in ``[...]``; the current match row starts with
``>``.
"""

__all__ = [
    "render_cell",
    "render_chart_lines",
    "render_groups_svg",
]

CELL_WIDTH = 60
CELL_HEIGHT = 36
ARC_OFFSET = -25
STROKE_WIDTH = 3


def render_cell(op: str, jodi: str, cp: str) -> str:
    main = pad_jodi(jodi)
    if main == "":
        return "-"
    derived = decompose(main)
    mark = "!" if is_special(main) else ""
    op_text = "".join(split_pana(op)) or "   "
    cp_text = "".join(split_pana(cp)) or "   "
    return f"{op_text:>3} {derived.top}/{main}{mark}/{derived.bottom} {cp_text:<3}"


def render_chart_lines(chart: ChartData, search: SearchResult | None = None) -> list[str]:
    lines = [f"{chart.chart.name} ({chart.key}, {len(chart.rows)} weeks)"]
    lines.append(" | ".join(["Week".ljust(27)] + [d.ljust(17) for d in chart.days]))
    current = search.current if search is not None else None
    for idx, row in enumerate(chart.rows):
        dr = split_date_range(row.date_range)
        label = f"{dr.start} {dr.to_text} {dr.end}".strip()
        cells = []
        for day in chart.days:
            cell = row.cell(day)
            text = render_cell(cell.open_pana, cell.jodi, cell.close_pana)
            if idx == current and search is not None and search.cell_flags.get(day):
                text = f"[{text}]"
            cells.append(text.ljust(17))
        prefix = ">" if idx == current else " "
        lines.append(prefix + " | ".join([label.ljust(26)] + cells))
    return lines


def _center(row: int, col: int) -> tuple[float, float]:
    return (col * CELL_WIDTH + CELL_WIDTH / 2, row * CELL_HEIGHT + CELL_HEIGHT / 2)


def render_groups_svg(matrix: Sequence[Sequence[Any]], title: str = "") -> str:
    """Draw a pattern-service matrix with its pattern groups as SVG.

    Labelled cells get their group colour; consecutive cells of a group are
    joined by a quadratic arc when on the same row, else a straight line.
    """
    groups = find_pattern_groups(matrix)
    colors = assign_colors(groups)
    n_rows = len(matrix)
    n_cols = max((len(r) for r in matrix), default=0)
    width = n_cols * CELL_WIDTH
    height = n_rows * CELL_HEIGHT

    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">'
    ]
    if title:
        parts.append(f"<title>{escape(title)}</title>")
    for r, row in enumerate(matrix):
        for c, cell in enumerate(row):
            ptype = pattern_type(cell)
            fill = f"{colors[ptype]}33" if ptype else "#ffffff"
            text_color = colors[ptype] if ptype else "#333333"
            x, y = c * CELL_WIDTH, r * CELL_HEIGHT
            cx, cy = _center(r, c)
            parts.append(
                f'<rect x="{x}" y="{y}" width="{CELL_WIDTH}" height="{CELL_HEIGHT}" '
                f'fill="{fill}" stroke="#cccccc"/>'
            )
            parts.append(
                f'<text x="{cx}" y="{cy}" fill="{text_color}" text-anchor="middle" '
                f'dominant-baseline="middle" font-weight="600">{escape(clean_cell(cell))}</text>'
            )
    for conn in connectors(groups):
        x1, y1 = _center(conn.start.row, conn.start.col)
        x2, y2 = _center(conn.end.row, conn.end.col)
        if conn.kind is ConnectorKind.ARC:
            mid_x = (x1 + x2) / 2
            parts.append(
                f'<path d="M {x1} {y1} Q {mid_x} {y1 + ARC_OFFSET} {x2} {y2}" '
                f'stroke="{conn.color}" stroke-width="{STROKE_WIDTH}" fill="transparent"/>'
            )
        else:
            parts.append(
                f'<line x1="{x1}" y1="{y1}" x2="{x2}" y2="{y2}" '
                f'stroke="{conn.color}" stroke-width="{STROKE_WIDTH}"/>'
            )
    parts.append("</svg>")
    return "\n".join(parts)
