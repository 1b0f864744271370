from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .digits import difference_digit, total_digit

"""Query token grammar for per-day jodi searches.

Forms, checked in this order (first match wins):

    "a,b"  PAIR             main[0] == a and main[1] == b
    "Td"   TOTAL            (main[0] + main[1]) % 10 == d
    "*d"   WILDCARD_SECOND  main[1] == d
    "d*"   WILDCARD_FIRST   main[0] == d
    "Dd"   DIFFERENCE       difference_digit(main[0], main[1]) == d
    other  EXACT            main == token

An empty token is "no constraint" and never matches on its own.
"""

__all__ = [
    "TokenKind",
    "QueryToken",
    "parse_token",
    "match_token",
]


class TokenKind(Enum):
    EMPTY = "empty"
    PAIR = "pair"
    TOTAL = "total"
    WILDCARD_SECOND = "wildcard_second"
    WILDCARD_FIRST = "wildcard_first"
    DIFFERENCE = "difference"
    EXACT = "exact"


@dataclass(frozen=True)
class QueryToken:
    raw: str  # trimmed user input
    kind: TokenKind
    first: str = ""  # PAIR / WILDCARD_FIRST: expected first character
    second: str = ""  # PAIR / WILDCARD_SECOND: expected second character
    digit: str = ""  # TOTAL / DIFFERENCE: expected derived digit

    @property
    def is_empty(self) -> bool:
        return self.kind is TokenKind.EMPTY


def parse_token(text: str | None) -> QueryToken:
    raw = (text or "").strip()
    if raw == "":
        return QueryToken(raw="", kind=TokenKind.EMPTY)

    if "," in raw:
        parts = [p.strip() for p in raw.split(",")]
        if len(parts) == 2 and parts[0] != "" and parts[1] != "":
            return QueryToken(raw=raw, kind=TokenKind.PAIR, first=parts[0], second=parts[1])

    if len(raw) >= 2:
        if raw.startswith("T"):
            return QueryToken(raw=raw, kind=TokenKind.TOTAL, digit=raw[1])
        if raw.startswith("*"):
            return QueryToken(raw=raw, kind=TokenKind.WILDCARD_SECOND, second=raw[1])
        if raw.endswith("*"):
            return QueryToken(raw=raw, kind=TokenKind.WILDCARD_FIRST, first=raw[0])
        if raw.startswith("D"):
            return QueryToken(raw=raw, kind=TokenKind.DIFFERENCE, digit=raw[1])
    return QueryToken(raw=raw, kind=TokenKind.EXACT)


def _numeric_pair(main: str) -> tuple[int, int] | None:
    if len(main) < 2 or not (main[0].isdigit() and main[1].isdigit()):
        return None
    return int(main[0]), int(main[1])


def match_token(token: str | QueryToken | None, main: str) -> bool:
    """Test one query token against the zero-padded main digits of a jodi.

    Args:
        token: Raw token text or an already parsed QueryToken
        main: Zero-padded jodi digits ("05"), the placeholder "**" or ""

    Returns:
        True when the token constrains the value and the value satisfies it.
        Empty tokens always return False.
    """
    qt = token if isinstance(token, QueryToken) else parse_token(token)
    main = main or ""
    kind = qt.kind

    if kind is TokenKind.EMPTY:
        return False
    if kind is TokenKind.PAIR:
        return len(main) >= 2 and main[0] == qt.first and main[1] == qt.second
    if kind is TokenKind.WILDCARD_SECOND:
        return len(main) >= 2 and main[1] == qt.second
    if kind is TokenKind.WILDCARD_FIRST:
        return main != "" and main[0] == qt.first
    if kind is TokenKind.TOTAL:
        pair = _numeric_pair(main)
        return pair is not None and str(total_digit(*pair)) == qt.digit
    if kind is TokenKind.DIFFERENCE:
        pair = _numeric_pair(main)
        return pair is not None and str(difference_digit(*pair)) == qt.digit
    return main == qt.raw
