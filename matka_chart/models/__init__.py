"""Domain models for the Matka jodi chart tool.

Value types shared by the engine, the storage adapters and the services.
"""

from .chart_result import ChartData, ChartStat, LoadResult, SearchResult
from .config_models import CacheConfig, ChartConfig, ChartsConfig, DatabaseConfig, PatternApiConfig
from .jodi import DateRange, DerivedDigits, DigitPair, JodiParts
from .week_row import DayCell, WeekRow

__all__ = [
    # Configuration models
    "CacheConfig",
    "ChartConfig",
    "ChartsConfig",
    "DatabaseConfig",
    "PatternApiConfig",
    # Chart models
    "DateRange",
    "DayCell",
    "DerivedDigits",
    "DigitPair",
    "JodiParts",
    "WeekRow",
    # Results
    "ChartData",
    "ChartStat",
    "LoadResult",
    "SearchResult",
]
