from __future__ import annotations

from dataclasses import dataclass, field

from .week_row import DATE_RANGE_COLUMN, day_columns

"""Config dataclasses for the chart engine.

These are the typed form of config/charts.yml; the loader in
matka_chart/config/loader.py builds them after schema validation.
"""

DEFAULT_LIMIT = 1500
DEFAULT_TTL_SECONDS = 2 * 60 * 60
DEFAULT_CACHE_VERSION = "1.0.1"
DEFAULT_PROTECTED_ROWS = 0
# header/legend rows at the top of a pattern-service matrix
DEFAULT_MATRIX_PROTECTED_ROWS = 10
DEFAULT_RETRY_DELAY = 1.2


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None
    port: int | None
    user: str | None
    password: str | None
    database: str | None
    dsn: str | None


@dataclass(frozen=True)
class ChartConfig:
    """One chart table: weekday list and storage identifier.

    Every per-chart difference lives here so a single engine serves all
    charts.
    """
    key: str  # config key, also the spreadsheet file stem
    name: str  # display name ("Kalyan Chart")
    table: str  # relational table name
    days: tuple[str, ...]  # weekday columns in display order
    limit: int = DEFAULT_LIMIT  # newest N weeks fetched

    @property
    def expected_columns(self) -> set[str]:
        """Columns a spreadsheet source must provide."""
        required = {DATE_RANGE_COLUMN}
        for day in self.days:
            required.update(day_columns(day))
        return required


@dataclass(frozen=True)
class CacheConfig:
    directory: str = "./cache"
    ttl_seconds: int = DEFAULT_TTL_SECONDS
    version: str = DEFAULT_CACHE_VERSION


@dataclass(frozen=True)
class PatternApiConfig:
    url: str | None = None
    timeout: float = 30.0
    retry_delay: float = DEFAULT_RETRY_DELAY


@dataclass(frozen=True)
class ChartsConfig:
    """Root configuration object (config/charts.yml)."""
    source_directory: str  # spreadsheet fallback source (<key>.xlsx)
    charts: dict[str, ChartConfig]  # chart key -> chart configuration
    database: DatabaseConfig
    timezone: str = "UTC"
    protected_rows: int = DEFAULT_PROTECTED_ROWS  # leading chart weeks excluded from search
    matrix_protected_rows: int = DEFAULT_MATRIX_PROTECTED_ROWS  # same, for pattern-service matrices
    cache: CacheConfig = field(default_factory=CacheConfig)
    pattern_api: PatternApiConfig = field(default_factory=PatternApiConfig)

    def chart(self, key: str) -> ChartConfig:
        try:
            return self.charts[key]
        except KeyError:
            raise KeyError(f"unknown chart: {key}") from None
