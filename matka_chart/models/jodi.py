from __future__ import annotations

from dataclasses import dataclass

"""Value objects derived from a single jodi cell.

These are recomputed on every render / search pass and never persisted.
"""

__all__ = [
    "DigitPair",
    "DerivedDigits",
    "JodiParts",
    "DateRange",
]


@dataclass(frozen=True)
class DigitPair:
    """The two digits of a zero-padded jodi value.

    Invariant: ``first * 10 + second == int(padded_value)``.
    """
    first: int
    second: int

    @property
    def text(self) -> str:
        return f"{self.first}{self.second}"


@dataclass(frozen=True)
class DerivedDigits:
    """Display digits shown above (top) and below (bottom) a jodi.

    Both fields are strings: ``""`` for no data, ``"*"`` for the placeholder
    sentinel, otherwise a single digit.
    """
    top: str
    bottom: str


@dataclass(frozen=True)
class JodiParts:
    """Decomposed jodi cell including the marker flags of annotated cells."""
    top: str
    main: str  # zero-padded digits, "**" or ""
    bottom: str
    has_j: bool = False  # whole jodi highlighted
    has_op: bool = False  # open digit highlighted
    has_c: bool = False  # close digit highlighted
    has_t: bool = False  # total (bottom) digit highlighted
    has_d: bool = False  # difference (top) digit highlighted
    has_l: bool = False  # arrow from the left
    has_r: bool = False  # arrow from the right

    @property
    def is_blank(self) -> bool:
        return self.main == ""


@dataclass(frozen=True)
class DateRange:
    start: str
    to_text: str
    end: str
