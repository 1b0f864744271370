from __future__ import annotations

import pytest

from conftest import week
from matka_chart.engine.scan import (
    MatchNavigator,
    NavState,
    cell_match_flags,
    row_matches,
    scan_rows,
)


@pytest.fixture()
def t5_rows():
    return [
        week("w0", {"Mon": "23"}),
        week("w1", {"Mon": "41"}),
        week("w2", {"Mon": "50"}),
    ]


def test_scan_total_token_matches_in_order(t5_rows):
    assert scan_rows(t5_rows, {"Mon": "T5"}, protected_rows=0) == [0, 1, 2]


def test_scan_skips_protected_prefix(t5_rows):
    assert scan_rows(t5_rows, {"Mon": "T5"}, protected_rows=1) == [1, 2]
    assert scan_rows(t5_rows, {"Mon": "T5"}, protected_rows=10) == []
    assert scan_rows(t5_rows, {"Mon": "T5"}, protected_rows=-3) == [0, 1, 2]


def test_scan_all_empty_tokens_matches_nothing(t5_rows):
    assert scan_rows(t5_rows, {"Mon": ""}) == []
    assert scan_rows(t5_rows, {}) == []


def test_scan_requires_every_active_token():
    rows = [
        week("w0", {"Mon": "57", "Tue": "12"}),
        week("w1", {"Mon": "58", "Tue": "27"}),
        week("w2", {"Mon": "51", "Tue": "**"}),
    ]
    assert scan_rows(rows, {"Mon": "5*", "Tue": "*7"}) == [1]
    # empty tokens on other days are ignored
    assert scan_rows(rows, {"Mon": "5*", "Tue": ""}) == [0, 1, 2]


def test_scan_pads_single_digit_jodis():
    rows = [week("w0", {"Mon": "5"}), week("w1", {"Mon": "15"})]
    assert scan_rows(rows, {"Mon": "05"}) == [0]
    assert scan_rows(rows, {"Mon": "0*"}) == [0]


def test_row_matches_and_cell_flags():
    row = week("w0", {"Mon": "38", "Tue": "61"})
    assert row_matches(row, {"Mon": "3,8"})
    assert not row_matches(row, {"Mon": "3,8", "Tue": "T9"})
    flags = cell_match_flags(row, {"Mon": "3,8", "Tue": ""})
    assert flags == {"Mon": True, "Tue": False}


def test_navigator_cycles_through_matches(t5_rows):
    nav = MatchNavigator(["Mon"], protected_rows=0)
    assert nav.state is NavState.NO_SEARCH
    nav.set_token("Mon", "T5")
    result = nav.submit(t5_rows)
    assert result.indices == (0, 1, 2)
    assert nav.current == 0
    assert nav.state is NavState.HAS_MATCHES
    assert nav.advance() == 1
    assert nav.advance() == 2
    assert nav.state is NavState.EXHAUSTED
    assert not nav.has_next
    # no "next" after the last match
    assert nav.advance() == 2


def test_navigator_single_match_is_exhausted_immediately():
    rows = [week("w0", {"Mon": "38"}), week("w1", {"Mon": "12"})]
    nav = MatchNavigator(["Mon"])
    nav.set_token("Mon", "38")
    nav.submit(rows)
    assert nav.current == 0
    assert nav.state is NavState.EXHAUSTED


def test_navigator_no_matches_stays_no_search(t5_rows):
    nav = MatchNavigator(["Mon"])
    nav.set_token("Mon", "99")
    result = nav.submit(t5_rows)
    assert not result
    assert result.current is None
    assert nav.state is NavState.NO_SEARCH
    assert nav.advance() is None


def test_navigator_token_edit_resets(t5_rows):
    nav = MatchNavigator(["Mon"])
    nav.set_token("Mon", "T5")
    nav.submit(t5_rows)
    nav.advance()
    nav.set_token("Mon", "T6")
    assert nav.state is NavState.NO_SEARCH
    assert nav.matches == ()
    assert nav.current is None


def test_navigator_resubmit_starts_over(t5_rows):
    nav = MatchNavigator(["Mon"])
    nav.set_token("Mon", "T5")
    nav.submit(t5_rows)
    nav.advance()
    nav.advance()
    assert nav.submit(t5_rows).current == 0


def test_navigator_unknown_day():
    nav = MatchNavigator(["Mon", "Tue"])
    with pytest.raises(KeyError):
        nav.set_token("Sun", "T5")
    assert nav.tokens == {"Mon": "", "Tue": ""}


def test_navigator_active_cells():
    rows = [week("w0", {"Mon": "23", "Tue": "11"}), week("w1", {"Mon": "41", "Tue": "50"})]
    nav = MatchNavigator(["Mon", "Tue"])
    nav.set_token("Mon", "T5")
    nav.submit(rows)
    assert nav.is_cell_active(0, "Mon")
    assert not nav.is_cell_active(0, "Tue")
    assert not nav.is_cell_active(1, "Mon")
    nav.advance()
    assert nav.is_cell_active(1, "Mon")


def test_navigator_active_cells_follow_token_edits():
    rows = [week("w0", {"Mon": "23", "Tue": "11"})]
    nav = MatchNavigator(["Mon", "Tue"])
    assert not nav.is_cell_active(0, "Mon")
    nav.set_token("Mon", "T5")
    nav.submit(rows)
    assert nav.is_cell_active(0, "Mon")
    nav.set_token("Tue", "11")
    assert nav.state is NavState.NO_SEARCH
    assert not nav.is_cell_active(0, "Mon")


def test_navigator_advance_without_search():
    nav = MatchNavigator(["Mon"])
    assert nav.advance() is None
    assert nav.state is NavState.NO_SEARCH
