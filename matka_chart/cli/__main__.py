from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..engine.digits import split_date_range
from ..engine.groups import find_pattern_groups
from ..excel.reader import (
    MissingColumnsError,
    SheetHeaderError,
    chart_workbook_path,
    normalize_sheet,
    read_excel_file,
)
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, setup_logging
from ..models.chart_result import ChartData, LoadResult
from ..models.config_models import DEFAULT_MATRIX_PROTECTED_ROWS, ChartConfig, ChartsConfig
from ..services.cache import ChartCache
from ..services.chart_service import ChartLoadError, chart_from_matrix, load_charts, search_chart
from ..services.pattern_api import PatternApiClient, PatternApiError, PatternInputError
from ..services.renderer import render_chart_lines, render_groups_svg
from ..services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env (python-dotenv, override) and config/charts.yml
- Load the selected charts from PostgreSQL, falling back to the spreadsheet
  source when no connection can be made (or DISABLE_DB_CONNECT=1)
- Optionally search (--search DAY=TOKEN) and render (--show)
- --find-patterns posts input grids to the pattern service for one chart;
  --find-patterns and --groups-from matrices accept --search / --show too
- Print the SUMMARY line and exit with 0 / 1 / 2
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


class UsageError(Exception):
    """Invalid command line; mapped to EXIT_FATAL."""


class _ArgumentParser(argparse.ArgumentParser):
    # argparse exits with 2 on bad arguments, which is our partial-failure code
    def error(self, message: str) -> Any:
        raise UsageError(message)


@contextmanager
def _db_connection(cfg: ChartsConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper; tested via integration)
    """Provide a psycopg2 cursor for chart reads.

    Connection precedence:
        1. DATABASE_URL / PGDSN (whole DSN)
        2. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
        3. the database section of the config file
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if not dsn:
        host = os.getenv("PGHOST", db_cfg.host or "localhost")
        port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
        user = os.getenv("PGUSER", db_cfg.user or "postgres")
        password = os.getenv("PGPASSWORD", db_cfg.password or "")
        database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
        dsn = f"host={host} port={port} user={user} dbname={database}"
        if password:
            dsn += f" password={password}"

    conn = psycopg2.connect(dsn)
    # read-only: a failed chart query must not abort the following ones
    conn.autocommit = True
    try:
        with conn.cursor() as cur:
            yield cur
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; values override the environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_search(values: list[str]) -> dict[str, str]:
    tokens: dict[str, str] = {}
    for item in values:
        day, sep, token = item.partition("=")
        if not sep or not day.strip():
            raise UsageError(f"--search expects DAY=TOKEN, got {item!r}")
        tokens[day.strip()] = token.strip()
    return tokens


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = _ArgumentParser(description="Matka jodi chart viewer and search")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config file (YAML)")
    p.add_argument("--chart", action="append", default=[], metavar="KEY", help="Chart key (repeatable)")
    p.add_argument(
        "--search", action="append", default=[], metavar="DAY=TOKEN", help="Day token, e.g. Mon=T5 (repeatable)"
    )
    p.add_argument("--protected-rows", type=int, default=None, help="Leading rows excluded from search")
    p.add_argument("--show", action="store_true", help="Print the rendered chart")
    p.add_argument("--inspect-data", action="store_true", help="Print sheet headers & first rows then exit")
    p.add_argument("--svg-out", type=Path, default=None, help="Write pattern groups SVG to PATH")
    p.add_argument("--groups-from", type=Path, default=None, help="Saved pattern-service response (JSON)")
    p.add_argument(
        "--find-patterns", type=Path, default=None, help="Pattern input grids (JSON) sent to the pattern service"
    )
    p.add_argument("--no-cache", action="store_true", help="Bypass the chart cache")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = p.parse_args(argv)
    if args.svg_out is not None and args.groups_from is None and args.find_patterns is None:
        raise UsageError("--svg-out requires --groups-from or --find-patterns")
    if args.groups_from is not None and args.svg_out is None and not args.search and not args.show:
        raise UsageError("--groups-from requires --svg-out, --search or --show")
    if args.protected_rows is not None and args.protected_rows < 0:
        raise UsageError("--protected-rows must be >= 0")
    return args


def _inspect_data(cfg: ChartsConfig, keys: list[str]) -> int:
    directory = Path(cfg.source_directory)
    if not directory.exists():
        print(f"inspect: directory not found: {directory}")
        return EXIT_FATAL
    for key in keys:
        path = chart_workbook_path(directory, key)
        print(f"CHART: {key} FILE: {path.name}")
        if not path.exists():
            print("  missing")
            continue
        try:
            raw = read_excel_file(path, target_sheets=None)
        except (OSError, ValueError) as e:
            print(f"  read_error: {e}")
            continue
        for sname, df in raw.items():
            try:
                sd = normalize_sheet(df, sname, expected_columns=None)
            except (SheetHeaderError, MissingColumnsError) as e:
                print(f"  SHEET: {sname} error={e}")
                continue
            print(f"  SHEET: {sname} cols={sd.columns}")
            print("    sample_rows=", sd.rows[:3])
    return EXIT_SUCCESS_ALL


def _report_search(chart: ChartData, tokens: dict[str, str], protected: int, show: bool) -> int:
    """Log the matches of one chart and optionally print it; returns the match count."""
    logger = setup_logging()
    search = None
    if tokens:
        search = search_chart(chart, tokens, protected_rows=protected)
        logger.info(f"chart={chart.key} tokens={search.tokens} matches={len(search.matches)}")
        for n, idx in enumerate(search.matches, start=1):
            dr = split_date_range(chart.rows[idx].date_range)
            logger.info(f"chart={chart.key} match={n}/{len(search.matches)} row={idx} week={dr.start}..{dr.end}")
    if show:
        for line in render_chart_lines(chart, search):
            print(line)
    return len(search.matches) if search is not None else 0


def _report_matrix(
    matrix: list[Any],
    title: str,
    args: argparse.Namespace,
    tokens: dict[str, str],
    protected: int,
    chart: ChartConfig | None = None,
) -> int:
    """SVG output and/or search over a pattern-service matrix."""
    logger = setup_logging()
    if args.svg_out is not None:
        args.svg_out.parent.mkdir(parents=True, exist_ok=True)
        args.svg_out.write_text(render_groups_svg(matrix, title=title), encoding="utf-8")
        logger.info(f"svg written: {args.svg_out}")
    if tokens or args.show:
        try:
            data = chart_from_matrix(matrix, chart=chart, key=title)
        except ChartLoadError as e:
            logger.error(f"matrix: {e}")
            return EXIT_FATAL
        _report_search(data, tokens, protected, args.show)
    return EXIT_SUCCESS_ALL


def _matrix_protected_rows(args: argparse.Namespace, cfg: ChartsConfig | None) -> int:
    if args.protected_rows is not None:
        return args.protected_rows
    return cfg.matrix_protected_rows if cfg is not None else DEFAULT_MATRIX_PROTECTED_ROWS


def _groups_from(args: argparse.Namespace, tokens: dict[str, str]) -> int:
    logger = setup_logging()
    groups_from: Path = args.groups_from
    try:
        data = json.loads(groups_from.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"groups: cannot read {groups_from}: {e}")
        return EXIT_FATAL
    matrix = data.get("processedMatrix") if isinstance(data, dict) else data
    if not isinstance(matrix, list):
        logger.error(f"groups: no processedMatrix in {groups_from}")
        return EXIT_FATAL

    # a saved matrix needs no config; when one is present its prefix applies
    cfg = None
    if (tokens or args.show) and args.config.exists():
        try:
            cfg = load_config(args.config)
        except ConfigError as e:
            logger.error(f"config: {e}")
            return EXIT_FATAL
    return _report_matrix(matrix, groups_from.stem, args, tokens, _matrix_protected_rows(args, cfg))


def _find_patterns(cfg: ChartsConfig, keys: list[str], args: argparse.Namespace, tokens: dict[str, str]) -> int:
    logger = setup_logging()
    if len(keys) != 1:
        logger.error("usage: --find-patterns needs exactly one --chart")
        return EXIT_FATAL
    patterns_path: Path = args.find_patterns
    try:
        patterns = json.loads(patterns_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"patterns: cannot read {patterns_path}: {e}")
        return EXIT_FATAL
    if not isinstance(patterns, dict):
        logger.error(f"patterns: expected an object with pattern1..pattern3 in {patterns_path}")
        return EXIT_FATAL

    chart = cfg.chart(keys[0])
    try:
        client = PatternApiClient(cfg.pattern_api)
        result = client.find_patterns(chart, patterns)
    except (PatternInputError, PatternApiError) as e:
        logger.error(f"patterns: {e}")
        return EXIT_FATAL

    matrix = result["processedMatrix"]
    logger.info(f"chart={keys[0]} rows={len(matrix)} groups={len(find_pattern_groups(matrix))}")
    if args.svg_out is None and not tokens and not args.show:
        print(json.dumps(result, ensure_ascii=False))
        return EXIT_SUCCESS_ALL
    return _report_matrix(matrix, keys[0], args, tokens, _matrix_protected_rows(args, cfg), chart=chart)


def _load(
    cfg: ChartsConfig, keys: list[str], cache: ChartCache | None, error_log: ErrorLogBuffer
) -> tuple[LoadResult, str]:
    logger = setup_logging()
    # DISABLE_DB_CONNECT=1 skips the connection attempt entirely (tests, offline use)
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> spreadsheet source")
        return load_charts(cfg, keys, cursor=None, cache=cache, error_log=error_log), "spreadsheet"
    try:
        with _db_connection(cfg) as cur:
            return load_charts(cfg, keys, cursor=cur, cache=cache, error_log=error_log), "database"
    except psycopg2.Error as db_e:
        logger.info(f"DB connection failed -> fallback to spreadsheet source: {db_e}")
    return load_charts(cfg, keys, cursor=None, cache=cache, error_log=error_log), "spreadsheet"


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # only read sys.argv when argv is None; [] means "no arguments"
    if argv is None:
        argv = sys.argv[1:]
    try:
        args = _parse_args(argv)
        tokens = _parse_search(args.search)
    except UsageError as e:
        logger.error(f"usage: {e}")
        return EXIT_FATAL

    if args.debug:
        logger = setup_logging(debug=True)
        logger.debug("debug mode enabled")

    if args.groups_from is not None:
        return _groups_from(args, tokens)

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    keys = args.chart or list(cfg.charts.keys())
    unknown = [k for k in keys if k not in cfg.charts]
    if unknown:
        logger.error(f"unknown chart: {', '.join(unknown)}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(cfg, keys)

    if args.find_patterns is not None:
        return _find_patterns(cfg, keys, args, tokens)

    cache = None if args.no_cache else ChartCache(cfg.cache.directory, version=cfg.cache.version)
    result, mode = _load(cfg, keys, cache, ErrorLogBuffer())
    logger.info(f"mode={mode} total_rows={result.total_rows}")

    protected = args.protected_rows if args.protected_rows is not None else cfg.protected_rows
    total_matches = 0
    for chart in result.charts:
        total_matches += _report_search(chart, tokens, protected, args.show)

    summary_line = render_summary_line(result, matches=total_matches)
    # log_summary adds the "SUMMARY " prefix
    log_summary(summary_line[len("SUMMARY "):])

    if result.failed > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
