from __future__ import annotations

import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

"""Chart table reads from PostgreSQL.

Each chart table holds one row per week with an ``id`` sequence column. The
newest ``limit`` weeks are selected (``ORDER BY id DESC LIMIT n``) and then
reversed into chronological order; the ``id`` column is dropped because
nothing downstream uses it.

The cursor is any DB-API cursor (psycopg2 in production); column names are
taken from ``cursor.description`` so plain tuple cursors work.
"""

__all__ = [
    "ChartQueryError",
    "QueryMetrics",
    "fetch_chart_records",
]

_TABLE_NAME = re.compile(r"^[A-Za-z0-9_]+$")
_ID_COLUMNS = {"id", "ID"}


class ChartQueryError(Exception):
    pass


@dataclass(frozen=True)
class QueryMetrics:
    table: str
    row_count: int
    elapsed_seconds: float


def fetch_chart_records(
    cursor: Any,
    table: str,
    limit: int = 1500,
    metrics_callback: Callable[[QueryMetrics], None] | None = None,
) -> list[dict[str, Any]]:
    """Fetch the newest ``limit`` weeks of a chart table, oldest first.

    Parameters
    ----------
    cursor: DB-API cursor
    table: chart table name (alphanumeric and underscores only)
    limit: number of weeks to fetch
    metrics_callback: optional receiver of QueryMetrics for timing
    """
    if not _TABLE_NAME.match(table or ""):
        raise ChartQueryError(f"invalid table name: {table!r}")

    sql = f'SELECT * FROM "{table}" ORDER BY id DESC LIMIT %s'
    start = time.time()
    try:
        cursor.execute(sql, (limit,))
        fetched = cursor.fetchall()
        description = cursor.description
    except Exception as e:
        raise ChartQueryError(f"query failed table={table}: {e}") from e
    elapsed = time.time() - start

    if not description:
        raise ChartQueryError(f"no column metadata for table={table}")
    names = [d[0] for d in description]

    records: list[dict[str, Any]] = []
    for raw in reversed(fetched):
        if isinstance(raw, dict):
            record = dict(raw)
        else:
            record = dict(zip(names, raw, strict=False))
        for col in _ID_COLUMNS:
            record.pop(col, None)
        records.append(record)

    if metrics_callback is not None:
        metrics_callback(QueryMetrics(table=table, row_count=len(records), elapsed_seconds=elapsed))
    return records
