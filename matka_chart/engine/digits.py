from __future__ import annotations

import re
from typing import Any

from ..models.jodi import DateRange, DerivedDigits, DigitPair, JodiParts
from ..models.week_row import cell_text

"""Digit-pair decomposition and special-value classification.

Pure functions over jodi cell values. Nothing here raises for bad display
data: unparseable digits degrade to 0 and missing values render blank.

Rules:
- bottom (total) digit  = (first + second) % 10
- top (difference) digit = (second + 10 - first) % 10 if first > second
                           else (second - first) % 10
"""

__all__ = [
    "PLACEHOLDER",
    "SPECIAL_VALUES",
    "cell_text",
    "pad_jodi",
    "digit_pair",
    "difference_digit",
    "total_digit",
    "decompose",
    "is_special",
    "split_pana",
    "split_date_range",
    "jodi_parts",
]

PLACEHOLDER = "**"
PANA_PLACEHOLDER = "***"

SPECIAL_VALUES: frozenset[str] = frozenset(
    {
        "00", "05", "50", "55",
        "16", "11", "61", "66",
        "22", "27", "72", "77",
        "33", "38", "83", "88",
        "44", "49", "94", "99",
    }
)

# marker letters carried by annotated cells from the pattern service
_MARKERS = ("J", "OP", "C", "T", "D", "L", "R")
_NON_DIGIT = re.compile(r"[^0-9]")


def pad_jodi(value: Any) -> str:
    text = cell_text(value)
    if text == "" or text == PLACEHOLDER:
        return text
    if len(text) == 1:
        return "0" + text
    return text


def _digit(ch: str) -> int:
    return int(ch) if ch.isdigit() else 0


def digit_pair(value: Any) -> DigitPair:
    padded = pad_jodi(value).rjust(2, "0")
    return DigitPair(first=_digit(padded[0]), second=_digit(padded[1]))


def difference_digit(first: int, second: int) -> int:
    if first > second:
        return abs(second + 10 - first) % 10
    return abs(second - first) % 10


def total_digit(first: int, second: int) -> int:
    return (first + second) % 10


def decompose(value: Any) -> DerivedDigits:
    """Derive the top/bottom display digits of a jodi value.

    Args:
        value: Raw jodi cell (str / int / None). ``"**"`` is the placeholder.

    Returns:
        DerivedDigits with empty strings for missing data, ``"*"`` for the
        placeholder, otherwise single digits.
    """
    text = pad_jodi(value)
    if text == "":
        return DerivedDigits(top="", bottom="")
    if text == PLACEHOLDER:
        return DerivedDigits(top="*", bottom="*")
    pair = digit_pair(text)
    return DerivedDigits(
        top=str(difference_digit(pair.first, pair.second)),
        bottom=str(total_digit(pair.first, pair.second)),
    )


def is_special(value: Any) -> bool:
    return pad_jodi(value) in SPECIAL_VALUES


def split_pana(value: Any) -> tuple[str, str, str]:
    """Split an open/close pana into three display characters."""
    text = cell_text(value)
    if text == "":
        return ("", "", "")
    if text == PANA_PLACEHOLDER:
        return ("*", "*", "*")
    chars = list(text[:3]) + ["", "", ""]
    return (chars[0], chars[1], chars[2])


def split_date_range(label: Any) -> DateRange:
    text = cell_text(label)
    if not text:
        return DateRange(start="", to_text="", end="")
    parts = text.split(" to ")
    if len(parts) == 2:
        return DateRange(start=parts[0], to_text="to", end=parts[1])
    return DateRange(start=text, to_text="", end="")


def jodi_parts(value: Any) -> JodiParts:
    """Decompose a (possibly annotated) jodi cell.

    Annotated cells look like ``"38J"`` or ``"4OP7"``: marker letters are
    detected first, then the remaining digits form the jodi.
    """
    text = pad_jodi(value)
    if text == "":
        return JodiParts(top="", main="", bottom="")
    if text == PLACEHOLDER:
        return JodiParts(top="*", main=PLACEHOLDER, bottom="*")

    flags = {m: (m in text) for m in _MARKERS}
    digits = _NON_DIGIT.sub("", text)
    if digits == "":
        return JodiParts(top="", main="", bottom="")
    main = digits.rjust(2, "0")
    pair = DigitPair(first=int(main[0]), second=int(main[1]))
    return JodiParts(
        top=str(difference_digit(pair.first, pair.second)),
        main=main,
        bottom=str(total_digit(pair.first, pair.second)),
        has_j=flags["J"],
        has_op=flags["OP"],
        has_c=flags["C"],
        has_t=flags["T"],
        has_d=flags["D"],
        has_l=flags["L"],
        has_r=flags["R"],
    )
