from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .config_models import ChartConfig
from .week_row import WeekRow

"""Result models for chart loading and searching."""

__all__ = [
    "ChartData",
    "ChartStat",
    "LoadResult",
    "SearchResult",
]


@dataclass(frozen=True)
class ChartData:
    """A loaded chart: its configuration plus chronological week rows."""
    chart: ChartConfig
    rows: list[WeekRow]
    source: str  # "database" | "spreadsheet" | "pattern_service"

    @property
    def key(self) -> str:
        return self.chart.key

    @property
    def days(self) -> tuple[str, ...]:
        return self.chart.days


@dataclass(frozen=True)
class ChartStat:
    """Per-chart load statistics."""
    chart: str
    status: str  # loaded / failed
    rows: int
    elapsed_seconds: float
    source: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class LoadResult:
    """Aggregated outcome of loading one or more charts."""
    charts: list[ChartData]
    stats: list[ChartStat]
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float

    @property
    def loaded(self) -> int:
        return sum(1 for s in self.stats if s.status == "loaded")

    @property
    def failed(self) -> int:
        return sum(1 for s in self.stats if s.status == "failed")

    @property
    def total_rows(self) -> int:
        return sum(s.rows for s in self.stats if s.status == "loaded")


@dataclass(frozen=True)
class SearchResult:
    """Matches of one search over one chart."""
    chart: str
    tokens: dict[str, str]
    matches: list[int]  # row indices in chart order
    current: int | None  # first match, None when nothing matched
    cell_flags: dict[str, bool] = field(default_factory=dict)  # per day, for the current match
