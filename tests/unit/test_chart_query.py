from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from matka_chart.db.chart_query import ChartQueryError, fetch_chart_records


def _cursor(rows, columns=("id", "Week Date Range", "Mon")):
    cur = MagicMock()
    cur.fetchall.return_value = rows
    cur.description = [(c,) for c in columns]
    return cur


def test_fetch_reverses_to_chronological_and_drops_id():
    cur = _cursor([(3, "w3", "38"), (2, "w2", "05"), (1, "w1", "12")])
    records = fetch_chart_records(cur, "kalyan_panel", limit=3)
    sql, params = cur.execute.call_args[0]
    assert sql == 'SELECT * FROM "kalyan_panel" ORDER BY id DESC LIMIT %s'
    assert params == (3,)
    assert [r["Week Date Range"] for r in records] == ["w1", "w2", "w3"]
    assert all("id" not in r for r in records)


def test_fetch_accepts_dict_rows():
    cur = _cursor([{"ID": 1, "Week Date Range": "w1", "Mon": "38"}])
    assert fetch_chart_records(cur, "milan_day") == [{"Week Date Range": "w1", "Mon": "38"}]


def test_invalid_table_name_rejected_before_query():
    cur = _cursor([])
    with pytest.raises(ChartQueryError, match="invalid table name"):
        fetch_chart_records(cur, "x; DROP TABLE y")
    cur.execute.assert_not_called()


def test_driver_error_wrapped():
    cur = _cursor([])
    cur.execute.side_effect = RuntimeError("relation does not exist")
    with pytest.raises(ChartQueryError, match="query failed table=missing"):
        fetch_chart_records(cur, "missing")


def test_metrics_callback():
    cur = _cursor([(1, "w1", "38")])
    seen = []
    fetch_chart_records(cur, "t", metrics_callback=seen.append)
    assert seen[0].table == "t"
    assert seen[0].row_count == 1
    assert seen[0].elapsed_seconds >= 0
