from __future__ import annotations

from ..models.chart_result import LoadResult

"""SUMMARY line rendering."""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very small numbers
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: LoadResult, matches: int = 0) -> str:
    """Render the SUMMARY line for a CLI run.

    Format:
    SUMMARY charts={total}/{total} loaded={ok} failed={bad} rows={rows}
    matches={matches} elapsed_sec={elapsed}

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> r = LoadResult(charts=[], stats=[], start_time=t, end_time=t, elapsed_seconds=2.0)
        >>> render_summary_line(r)
        'SUMMARY charts=0/0 loaded=0 failed=0 rows=0 matches=0 elapsed_sec=2'
    """
    total = len(result.stats)
    return (
        f"SUMMARY charts={total}/{total} "
        f"loaded={result.loaded} "
        f"failed={result.failed} "
        f"rows={result.total_rows} "
        f"matches={matches} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)}"
    )
