from __future__ import annotations

from datetime import timedelta

import pytest

from analysis.aggregate import EventAggregator
from conftest import RecordingReporter
from parsers.slowlog import SlowlogEvent


def _event(
    query: str,
    query_time: float,
    *,
    ts: str = "240101 10:00:00",
    rows_sent: int = 1,
    qc_hit: bool = False,
    rate_limit: int = 1,
    db: str = "shop",
) -> SlowlogEvent:
    return SlowlogEvent(
        ts=ts,
        query=query,
        db=db,
        time_metrics={"Query_time": query_time, "Lock_time": 0.0},
        number_metrics={"Rows_sent": rows_sent},
        bool_metrics={"QC_Hit": qc_hit},
        rate_limit=rate_limit,
    )


def test_per_class_and_global_stats():
    agg = EventAggregator(utc_offset=timedelta(hours=2))
    agg.add_event(_event("select 1", 1.0, rows_sent=2), "A", "select ?")
    agg.add_event(_event("select 2", 3.0, ts="240101 10:00:05", rows_sent=4, qc_hit=True), "A", "select ?")
    agg.add_event(_event("select 2", 2.0, rows_sent=6), "A", "select ?")
    agg.add_event(_event("update t set a = 1", 0.5), "B", "update t set a = ?")

    res = agg.finalize()

    assert list(res.classes) == ["A", "B"]
    a = res.classes["A"]
    assert a.id == "A"
    assert a.fingerprint == "select ?"
    assert a.total_queries == 3
    assert a.unique_queries == 2
    assert a.outliers == 0

    qt = a.metrics.time_metrics["Query_time"]
    assert qt.sum == pytest.approx(6.0)
    assert qt.min == pytest.approx(1.0)
    assert qt.max == pytest.approx(3.0)
    assert qt.avg == pytest.approx(2.0)
    assert qt.med == pytest.approx(2.0)
    assert qt.p95 == pytest.approx(2.9)

    rows = a.metrics.number_metrics["Rows_sent"]
    assert (rows.sum, rows.min, rows.max) == (12, 2, 6)
    assert rows.avg == pytest.approx(4.0)

    assert a.metrics.bool_metrics["QC_Hit"].sum == 1

    assert a.example is not None
    assert a.example.query == "select 2"
    assert a.example.query_time == pytest.approx(3.0)
    assert a.example.db == "shop"
    assert a.example.ts == "2024-01-01 12:00:05"

    g = res.global_metrics
    assert g.total_queries == 4
    assert g.metrics.query_time_sum == pytest.approx(6.5)
    assert g.example is None


def test_outliers_are_not_scaled_by_rate_limit():
    agg = EventAggregator(outlier_time=5.0)
    for qt in (1.0, 2.0, 8.0):
        agg.add_event(_event("select 1", qt, rows_sent=2, rate_limit=10), "A", "select ?")

    res = agg.finalize()
    a = res.classes["A"]

    assert res.rate_limit == 10
    assert a.outliers == 1
    assert a.total_queries == 2 * 10 + 1
    qt = a.metrics.time_metrics["Query_time"]
    assert qt.sum == pytest.approx(3.0 * 10 + 8.0)
    assert qt.avg == pytest.approx(38.0 / 21)
    assert a.metrics.number_metrics["Rows_sent"].sum == 2 * 2 * 10 + 2


def test_rate_limit_change_is_reported_once(reporter: RecordingReporter):
    agg = EventAggregator(reporter=reporter)
    agg.add_event(_event("select 1", 1.0, rate_limit=10), "A", "select ?")
    agg.add_event(_event("select 1", 1.0, rate_limit=20), "A", "select ?")
    agg.add_event(_event("select 1", 1.0, rate_limit=30), "A", "select ?")

    res = agg.finalize()

    assert res.rate_limit == 10
    assert len(reporter.warnings) == 1
    assert "rate limit changed from 10 to 20" in reporter.warnings[0]


def test_empty_aggregate():
    res = EventAggregator().finalize()

    assert res.classes == {}
    assert res.global_metrics.total_queries == 0
    assert res.global_metrics.metrics.query_time_sum == 0.0


def test_example_keeps_first_of_equally_slow_events():
    agg = EventAggregator()
    agg.add_event(_event("select 1", 2.0, ts="240101 10:00:01"), "A", "select ?")
    agg.add_event(_event("select 2", 2.0, ts="240101 10:00:02"), "A", "select ?")
    agg.add_event(_event("select 3", 1.0, ts="240101 10:00:03"), "A", "select ?")

    a = agg.finalize().classes["A"]

    assert a.example is not None
    assert a.example.query == "select 1"
    assert a.example.ts == "2024-01-01 10:00:01"
    assert a.unique_queries == 3


def test_buffered_rows_do_not_hold_query_text():
    agg = EventAggregator()
    for i in range(50):
        agg.add_event(_event(f"select {i}", float(i)), "A", "select ?")

    assert not any(
        isinstance(v, str) and v.startswith("select") for row in agg._rows for v in row.values()
    )
    a = agg.finalize().classes["A"]
    assert a.unique_queries == 50
    assert a.fingerprint == "select ?"
    assert a.example is not None and a.example.query == "select 49"
