from __future__ import annotations

import io
from pathlib import Path

import pytest

from conftest import BANNER, T0, slowlog_entry, write_slowlog
from parsers.slowlog import ParserOptions, SlowlogParser, SlowlogStartError


def _events(text: str, options: ParserOptions | None = None):
    parser = SlowlogParser(io.StringIO(text), options)
    parser.start()
    return list(parser.events())


def test_parses_headers_metrics_and_query():
    text = BANNER + slowlog_entry(
        "SELECT * FROM orders WHERE id = 7",
        ts=T0,
        query_time=1.5,
        lock_time=0.25,
        rows_sent=3,
        rows_examined=300,
        schema="shop",
    )

    (ev,) = _events(text)

    assert ev.ts == "240101 10:00:00"
    assert ev.user == "app"
    assert ev.host == "localhost"
    assert ev.db == "shop"
    assert ev.query == "SELECT * FROM orders WHERE id = 7"
    assert ev.time_metrics == {"Query_time": 1.5, "Lock_time": 0.25}
    assert ev.number_metrics["Rows_sent"] == 3
    assert ev.number_metrics["Rows_examined"] == 300
    assert ev.admin is False
    assert ev.rate_limit == 1


def test_entry_without_time_line_has_empty_ts():
    text = slowlog_entry("select 1", ts=T0) + slowlog_entry("select 2")

    first, second = _events(text)

    assert first.ts == "240101 10:00:00"
    assert second.ts == ""
    assert second.query == "select 2"


def test_multiline_query_and_use_db():
    text = (
        "# Time: 240101 10:00:00\n"
        "# User@Host: app[app] @  [10.0.0.5]  Id:     3\n"
        "# Query_time: 0.200000  Lock_time: 0.000000 Rows_sent: 0  Rows_examined: 0\n"
        "use inventory;\n"
        "SET timestamp=1704103200;\n"
        "SELECT a,\n"
        "       b\n"
        "FROM items;\n"
    )

    (ev,) = _events(text)

    assert ev.db == "inventory"
    assert ev.host == "10.0.0.5"
    assert ev.query == "SELECT a,\n       b\nFROM items"


def test_admin_command_and_filter():
    text = (
        "# Time: 240101 10:00:00\n"
        "# User@Host: app[app] @ localhost []  Id:     3\n"
        "# Query_time: 0.000010  Lock_time: 0.000000 Rows_sent: 0  Rows_examined: 0\n"
        "# administrator command: Quit;\n"
        + slowlog_entry("select 1", ts=T0)
    )

    admin, query = _events(text)
    assert admin.admin is True
    assert admin.query == "administrator command: Quit"
    assert query.query == "select 1"

    filtered = _events(text, ParserOptions(filter_admin_commands=frozenset({"Quit"})))
    assert [e.query for e in filtered] == ["select 1"]


def test_bool_metrics_and_rate_limit():
    text = (
        "# Time: 240101 10:00:00\n"
        "# User@Host: app[app] @ localhost []  Id:     3\n"
        "# Schema: shop  Last_errno: 0  Killed: 0\n"
        "# Query_time: 0.100000  Lock_time: 0.000000  Rows_sent: 1  Rows_examined: 1\n"
        "# QC_Hit: No  Full_scan: Yes  Full_join: No\n"
        "# Log_slow_rate_type: query  Log_slow_rate_limit: 100\n"
        "select 1;\n"
    )

    (ev,) = _events(text)

    assert ev.bool_metrics == {"QC_Hit": False, "Full_scan": True, "Full_join": False}
    assert ev.rate_type == "query"
    assert ev.rate_limit == 100
    assert ev.db == "shop"


def test_lineno_points_at_first_header_line():
    text = BANNER + slowlog_entry("select 1", ts=T0) + slowlog_entry("select 2")

    first, second = _events(text)

    assert first.lineno == 4
    assert second.lineno == 4 + 5


def test_start_twice_raises():
    parser = SlowlogParser(io.StringIO(""))
    parser.start()
    with pytest.raises(SlowlogStartError):
        parser.start()


def test_events_before_start_raises():
    parser = SlowlogParser(io.StringIO(""))
    with pytest.raises(SlowlogStartError):
        list(parser.events())


def test_start_on_write_only_handle_raises(tmp_path: Path):
    with (tmp_path / "out.log").open("w") as fh:
        parser = SlowlogParser(fh)
        with pytest.raises(SlowlogStartError):
            parser.start()


def test_stop_ends_the_stream(tmp_path: Path):
    path = write_slowlog(
        tmp_path / "slow.log",
        [slowlog_entry(f"select {i}", ts=T0) for i in range(5)],
    )
    with path.open() as fh:
        parser = SlowlogParser(fh)
        parser.start()
        seen = []
        for ev in parser.events():
            seen.append(ev.query)
            parser.stop()

    assert seen == ["select 0"]
