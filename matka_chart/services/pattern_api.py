from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import requests

from ..models.config_models import ChartConfig, PatternApiConfig

"""Client for the remote pattern-matching service.

The service itself (the pattern search over historical tables) is external.
This module only builds the request payload from the three input grids and
posts it. The service is known to sleep when idle, so a failed first
request is retried once after ``retry_delay`` seconds.
"""

__all__ = [
    "PATTERN_KEYS",
    "PatternApiError",
    "PatternInputError",
    "PatternApiClient",
    "build_pattern_payload",
]

logger = logging.getLogger(__name__)

PATTERN_KEYS = ("pattern1", "pattern2", "pattern3")
MIN_PATTERN_ROWS = 1
MAX_PATTERN_ROWS = 10
EMPTY_CELL = "None"


class PatternApiError(Exception):
    pass


class PatternInputError(ValueError):
    pass


def _has_input(grid: Sequence[Sequence[str]]) -> bool:
    return any(str(cell).strip() != "" for row in grid for cell in row)


def build_pattern_payload(chart: ChartConfig, patterns: Mapping[str, Sequence[Sequence[str]]]) -> dict[str, Any]:
    """Validate the three pattern grids and build the request body.

    Rules:
    - each grid has 1-10 rows and one column per chart day
    - patterns 2 and 3 must contain at least one value
    - empty cells are sent as "None"
    """
    payload: dict[str, Any] = {"chart": chart.key}
    for key in PATTERN_KEYS:
        grid = patterns.get(key)
        if grid is None:
            raise PatternInputError(f"{key} missing")
        if not MIN_PATTERN_ROWS <= len(grid) <= MAX_PATTERN_ROWS:
            raise PatternInputError(
                f"{key}: rows must be between {MIN_PATTERN_ROWS} and {MAX_PATTERN_ROWS}, got {len(grid)}"
            )
        for row in grid:
            if len(row) != len(chart.days):
                raise PatternInputError(f"{key}: expected {len(chart.days)} columns, got {len(row)}")
        payload[key] = [[str(c).strip() or EMPTY_CELL for c in row] for row in grid]

    if not (_has_input(patterns["pattern2"]) and _has_input(patterns["pattern3"])):
        raise PatternInputError("enter at least one value in pattern2 and pattern3")
    return payload


class PatternApiClient:
    def __init__(
        self,
        config: PatternApiConfig,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not config.url:
            raise PatternApiError("pattern_api.url is not configured")
        self.config = config
        self.session = session or requests.Session()
        self._sleep = sleep

    def _post_once(self, payload: Any) -> Any:
        r = self.session.post(self.config.url, json=payload, timeout=self.config.timeout)
        r.raise_for_status()
        return r.json()

    def post(self, payload: Any) -> Any:
        """POST ``payload`` as JSON; retry once after a failure.

        Raises:
            PatternApiError: when the retry fails as well
        """
        try:
            return self._post_once(payload)
        except (requests.RequestException, ValueError) as first:
            logger.warning("pattern service request failed, retrying in %ss: %s", self.config.retry_delay, first)
        self._sleep(self.config.retry_delay)
        try:
            return self._post_once(payload)
        except (requests.RequestException, ValueError) as second:
            raise PatternApiError(f"pattern service not responding: {second}") from second

    def find_patterns(self, chart: ChartConfig, patterns: Mapping[str, Sequence[Sequence[str]]]) -> dict[str, Any]:
        """Submit the input grids; the service answers with processedMatrix."""
        result = self.post([build_pattern_payload(chart, patterns)])
        if not isinstance(result, dict) or "processedMatrix" not in result:
            raise PatternApiError("pattern not available in chart")
        return result
