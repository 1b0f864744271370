from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from ..db.chart_query import ChartQueryError, fetch_chart_records
from ..engine.groups import clean_cell
from ..engine.scan import cell_match_flags, parse_tokens, scan_rows
from ..excel.reader import (
    MissingColumnsError,
    SheetHeaderError,
    chart_workbook_path,
    read_chart_workbook,
)
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.chart_result import ChartData, ChartStat, LoadResult, SearchResult
from ..models.config_models import ChartConfig, ChartsConfig
from ..models.week_row import WeekRow, cell_text, days_for_matrix_width
from .cache import ChartCache
from .progress import ProgressTracker

"""Chart loading and searching.

Coordinates the storage adapters (PostgreSQL or spreadsheet), the cache and
the engine:
- load_chart: one chart -> ChartData (typed WeekRows, chronological)
- load_charts: several charts with progress display and error logging
- search_chart: run a day -> token search over a loaded chart
- chart_from_matrix: wrap a pattern-service matrix so it can be searched
"""

logger = logging.getLogger(__name__)

SOURCE_DATABASE = "database"
SOURCE_SPREADSHEET = "spreadsheet"
SOURCE_PATTERN_SERVICE = "pattern_service"


class ChartLoadError(Exception):
    """Raised when a chart cannot be loaded from its source."""


def _records_as_text(records: Iterable[Mapping[str, Any]]) -> list[dict[str, str]]:
    # cache stores JSON; keep only text values
    return [{str(k): cell_text(v) for k, v in r.items()} for r in records]


def _load_records_from_database(cursor: Any, chart: ChartConfig) -> list[dict[str, str]]:
    try:
        records = fetch_chart_records(cursor, chart.table, chart.limit)
    except ChartQueryError as e:
        raise ChartLoadError(str(e)) from e
    return _records_as_text(records)


def _load_records_from_spreadsheet(source_directory: str, chart: ChartConfig) -> list[dict[str, str]]:
    path = chart_workbook_path(source_directory, chart.key)
    if not path.exists():
        raise ChartLoadError(f"workbook not found: {path}")
    try:
        sheet = read_chart_workbook(path, expected_columns=chart.expected_columns)
    except (SheetHeaderError, MissingColumnsError) as e:
        raise ChartLoadError(str(e)) from e
    except Exception as e:
        raise ChartLoadError(f"failed reading {path.name}: {e}") from e
    # newest `limit` weeks, same as the database query
    return _records_as_text(sheet.rows[-chart.limit:])


def load_chart(
    config: ChartsConfig,
    key: str,
    cursor: Any = None,
    cache: ChartCache | None = None,
) -> ChartData:
    """Load one chart as typed week rows.

    Args:
        config: Charts configuration
        key: Chart key
        cursor: Database cursor; None reads the spreadsheet source instead
        cache: Optional cache; entries are keyed per chart and source

    Returns:
        ChartData with rows in chronological order

    Raises:
        ChartLoadError: unknown chart or unreadable source
    """
    try:
        chart = config.chart(key)
    except KeyError as e:
        raise ChartLoadError(str(e.args[0])) from e

    if cursor is not None:
        source = SOURCE_DATABASE

        def loader() -> list[dict[str, str]]:
            return _load_records_from_database(cursor, chart)
    else:
        source = SOURCE_SPREADSHEET

        def loader() -> list[dict[str, str]]:
            return _load_records_from_spreadsheet(config.source_directory, chart)

    if cache is not None:
        records = cache.get_or_fetch(f"{key}.{source}", config.cache.ttl_seconds, loader)
    else:
        records = loader()

    rows = [WeekRow.from_record(r, chart.days) for r in records]
    logger.debug("chart=%s source=%s rows=%d", key, source, len(rows))
    return ChartData(chart=chart, rows=rows, source=source)


def load_charts(
    config: ChartsConfig,
    keys: Iterable[str] | None = None,
    cursor: Any = None,
    cache: ChartCache | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> LoadResult:
    """Load several charts; a failing chart is recorded and skipped.

    Args:
        keys: Chart keys in load order (None = every configured chart)
        error_log: Buffer receiving one ErrorRecord per failed chart; flushed
            before returning

    Returns:
        LoadResult with the loaded charts and one ChartStat per key
    """
    start_time = datetime.now(UTC)
    keys = list(keys) if keys is not None else list(config.charts.keys())
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    source = SOURCE_DATABASE if cursor is not None else SOURCE_SPREADSHEET

    charts: list[ChartData] = []
    stats: list[ChartStat] = []
    with ProgressTracker(len(keys)) as progress:
        for key in keys:
            progress.start(key)
            chart_start = datetime.now(UTC)
            try:
                data = load_chart(config, key, cursor=cursor, cache=cache)
            except ChartLoadError as e:
                elapsed = (datetime.now(UTC) - chart_start).total_seconds()
                logger.warning("chart=%s load failed: %s", key, e)
                error_log.append(
                    ErrorRecord.create(
                        chart=key,
                        source=source,
                        row=-1,
                        error_type="CHART_LOAD_ERROR",
                        message=str(e),
                    )
                )
                stats.append(ChartStat(chart=key, status="failed", rows=0, elapsed_seconds=elapsed, error=str(e)))
                progress.finish(success=False)
                continue
            elapsed = (datetime.now(UTC) - chart_start).total_seconds()
            charts.append(data)
            stats.append(
                ChartStat(chart=key, status="loaded", rows=len(data.rows), elapsed_seconds=elapsed, source=data.source)
            )
            progress.set_postfix(loaded=len(charts), failed=len(stats) - len(charts))
            progress.finish(success=True)

    try:
        path = error_log.flush()
        if path is not None:
            logger.info("error log written: %s", path)
    except OSError as e:
        logger.warning("failed writing error log: %s", e)

    end_time = datetime.now(UTC)
    return LoadResult(
        charts=charts,
        stats=stats,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
    )


def search_chart(chart: ChartData, tokens: Mapping[str, str], protected_rows: int = 0) -> SearchResult:
    """Run a search over a loaded chart.

    Tokens for days the chart does not have are ignored with a warning.
    """
    usable = {}
    for day, token in tokens.items():
        if day not in chart.days:
            logger.warning("chart=%s has no day %s; token %r ignored", chart.key, day, token)
            continue
        usable[day] = token
    matches = scan_rows(chart.rows, usable, protected_rows)
    current = matches[0] if matches else None
    flags = cell_match_flags(chart.rows[current], usable) if current is not None else {}
    active = parse_tokens(usable)
    return SearchResult(
        chart=chart.key,
        tokens={day: qt.raw for day, qt in active.items()},
        matches=matches,
        current=current,
        cell_flags=flags,
    )


def export_matrix(chart: ChartData, weeks: int | None = None) -> list[list[str]]:
    """Flat ``[label, op, jodi, cp, ...]`` rows of the newest ``weeks`` weeks."""
    rows = chart.rows if weeks is None else chart.rows[-weeks:]
    return [r.to_matrix_row() for r in rows]



def chart_from_matrix(
    matrix: Sequence[Sequence[Any]], chart: ChartConfig | None = None, key: str = "pattern"
) -> ChartData:
    """Wrap a pattern-service ``processedMatrix`` as a searchable chart.

    The weekday list is inferred from the row width (16/19/22); ``chart``
    supplies it when the width is not one of those. Pattern labels such as
    ``+4ap`` are stripped from every cell before the rows are typed.

    Raises:
        ChartLoadError: a row is not a list, or the weekdays cannot be inferred
    """
    for idx, row in enumerate(matrix):
        if not isinstance(row, (list, tuple)):
            raise ChartLoadError(f"matrix row {idx} is not a list")
    width = max((len(r) for r in matrix), default=0)
    days = days_for_matrix_width(width) or (chart.days if chart is not None else ())
    if not days:
        raise ChartLoadError(f"cannot infer weekdays from matrix width {width}")

    if chart is None:
        chart = ChartConfig(key=key, name=key, table=key, days=days)
    elif chart.days != days:
        chart = replace(chart, days=days)
    rows = [WeekRow.from_matrix_row([clean_cell(c) for c in row], days) for row in matrix]
    logger.debug("chart=%s source=%s rows=%d", chart.key, SOURCE_PATTERN_SERVICE, len(rows))
    return ChartData(chart=chart, rows=rows, source=SOURCE_PATTERN_SERVICE)
