from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .digits import jodi_parts
from .tokens import QueryToken, match_token, parse_token

if TYPE_CHECKING:
    from ..models.week_row import WeekRow

"""Grid match scan and sequential match navigation.

A search is a mapping ``day -> token``. A row matches when every non-empty
token matches the row's jodi for that day and at least one token is
non-empty, so an all-empty search never highlights the whole table.

Rows inside the protected prefix (index < protected_rows) are a legend /
header block and are never matched.
"""

__all__ = [
    "NavState",
    "MatchResult",
    "parse_tokens",
    "row_matches",
    "scan_rows",
    "cell_match_flags",
    "MatchNavigator",
]


class NavState(Enum):
    NO_SEARCH = "no_search"
    HAS_MATCHES = "has_matches"
    EXHAUSTED = "exhausted"  # pointer on the last match, no "next" offered


@dataclass(frozen=True)
class MatchResult:
    indices: tuple[int, ...]
    current: int | None

    def __bool__(self) -> bool:
        return bool(self.indices)


def parse_tokens(tokens: Mapping[str, str | QueryToken]) -> dict[str, QueryToken]:
    """Parse raw tokens, dropping the empty ones."""
    parsed: dict[str, QueryToken] = {}
    for day, token in tokens.items():
        qt = token if isinstance(token, QueryToken) else parse_token(token)
        if not qt.is_empty:
            parsed[day] = qt
    return parsed


def _row_main(row: WeekRow, day: str) -> str:
    return jodi_parts(row.jodi(day)).main


def row_matches(row: WeekRow, tokens: Mapping[str, str | QueryToken]) -> bool:
    active = parse_tokens(tokens)
    if not active:
        return False
    return all(match_token(qt, _row_main(row, day)) for day, qt in active.items())


def scan_rows(
    rows: Sequence[WeekRow],
    tokens: Mapping[str, str | QueryToken],
    protected_rows: int = 0,
) -> list[int]:
    """Return the ordered indices of matching rows beyond the protected prefix."""
    active = parse_tokens(tokens)
    if not active:
        return []
    start = max(protected_rows, 0)
    return [
        idx
        for idx in range(start, len(rows))
        if all(match_token(qt, _row_main(rows[idx], day)) for day, qt in active.items())
    ]


def cell_match_flags(row: WeekRow, tokens: Mapping[str, str | QueryToken]) -> dict[str, bool]:
    """Per-day flag: True where a non-empty token matches that day's jodi."""
    active = parse_tokens(tokens)
    return {day: (day in active and match_token(active[day], _row_main(row, day))) for day in row.days}


class MatchNavigator:
    """Search state for one chart table.

    NO_SEARCH -> HAS_MATCHES(first) on submit (stays NO_SEARCH when nothing
    matches); advance() moves to the next match; on the last match the state
    is EXHAUSTED and advance() is a no-op. Editing any token resets to
    NO_SEARCH.
    """

    def __init__(self, days: Sequence[str], protected_rows: int = 0) -> None:
        self.days = tuple(days)
        self.protected_rows = protected_rows
        self._tokens: dict[str, str] = {day: "" for day in self.days}
        self._matches: list[int] = []
        self._position: int | None = None
        self._rows: list[WeekRow] = []  # rows of the last submit

    @property
    def tokens(self) -> dict[str, str]:
        return dict(self._tokens)

    @property
    def matches(self) -> tuple[int, ...]:
        return tuple(self._matches)

    @property
    def current(self) -> int | None:
        if self._position is None:
            return None
        return self._matches[self._position]

    @property
    def has_next(self) -> bool:
        return self._position is not None and self._position < len(self._matches) - 1

    @property
    def state(self) -> NavState:
        if self._position is None:
            return NavState.NO_SEARCH
        if self.has_next:
            return NavState.HAS_MATCHES
        return NavState.EXHAUSTED

    def set_token(self, day: str, value: str) -> None:
        if day not in self._tokens:
            raise KeyError(f"unknown day: {day}")
        self._tokens[day] = value
        self._reset()

    def _reset(self) -> None:
        self._matches = []
        self._position = None

    def submit(self, rows: Sequence[WeekRow]) -> MatchResult:
        self._reset()
        self._rows = list(rows)
        matches = scan_rows(self._rows, self._tokens, self.protected_rows)
        if matches:
            self._matches = matches
            self._position = 0
        return self.result()

    def advance(self) -> int | None:
        if self._position is not None and self.has_next:
            self._position += 1
        return self.current

    def result(self) -> MatchResult:
        return MatchResult(indices=tuple(self._matches), current=self.current)

    def is_cell_active(self, row_index: int, day: str) -> bool:
        """True when the cell belongs to the current match and its token matched."""
        if self.current is None or row_index != self.current:
            return False
        row = self._rows[row_index]
        token = self._tokens.get(day, "")
        return token.strip() != "" and match_token(token, _row_main(row, day))
