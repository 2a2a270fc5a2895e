from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from common.model.slowlog import (
    ClassMetrics,
    IntervalResult,
    MetricSet,
    TimeStats,
)

BANNER = (
    "/usr/sbin/mysqld, Version: 8.0.36 (MySQL Community Server - GPL). started with:\n"
    "Tcp port: 3306  Unix socket: /var/run/mysqld/mysqld.sock\n"
    "Time                 Id Command    Argument\n"
)

T0 = datetime(2024, 1, 1, 10, 0, 0)


@dataclass
class RecordingReporter:
    infos: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def info(self, msg: str) -> None:
        self.infos.append(msg)

    def warning(self, msg: str) -> None:
        self.warnings.append(msg)


def slowlog_ts(ts: datetime) -> str:
    return ts.strftime("%y%m%d %H:%M:%S")


def slowlog_entry(
    query: str,
    *,
    ts: datetime | str | None = None,
    query_time: float = 0.1,
    lock_time: float = 0.0,
    rows_sent: int = 1,
    rows_examined: int = 1,
    user: str = "app",
    schema: str | None = None,
) -> str:
    """
    One slow log entry. ts=None writes no `# Time:` line, like MySQL does
    for entries logged within the same second as the previous one.
    """
    lines: list[str] = []
    if ts is not None:
        raw = slowlog_ts(ts) if isinstance(ts, datetime) else ts
        lines.append(f"# Time: {raw}")
    lines.append(f"# User@Host: {user}[{user}] @ localhost []  Id:    12")
    metrics = (
        f"# Query_time: {query_time:.6f}  Lock_time: {lock_time:.6f} "
        f"Rows_sent: {rows_sent}  Rows_examined: {rows_examined}"
    )
    if schema is not None:
        metrics = f"# Schema: {schema}  Last_errno: 0  Killed: 0\n" + metrics
    lines.append(metrics)
    lines.append(f"SET timestamp={int((T0 - datetime(1970, 1, 1)).total_seconds())};")
    lines.append(query if query.rstrip().endswith(";") else f"{query};")
    return "\n".join(lines) + "\n"


def write_slowlog(path: Path, entries: list[str], *, banner: bool = True) -> Path:
    text = (BANNER if banner else "") + "".join(entries)
    path.write_text(text, encoding="utf-8")
    return path


def class_metrics(class_id: str, count: int, query_time_sum: float) -> ClassMetrics:
    return ClassMetrics(
        id=class_id,
        fingerprint=f"select {class_id.lower()}",
        total_queries=count,
        unique_queries=1,
        outliers=0,
        metrics=MetricSet(
            time_metrics={
                "Query_time": TimeStats(
                    sum=query_time_sum,
                    min=0.0,
                    avg=query_time_sum / count if count else 0.0,
                    med=0.0,
                    p95=0.0,
                    max=0.0,
                )
            }
        ),
    )


def interval_result(
    classes: dict[str, tuple[int, float]], *, duration_s: float = 54.0
) -> IntervalResult:
    """
    classes maps class id -> (count, summed Query_time).
    """
    per_class = {cid: class_metrics(cid, n, qt) for cid, (n, qt) in classes.items()}
    total = sum(n for n, _ in classes.values())
    qt_total = sum(qt for _, qt in classes.values())
    global_metrics = class_metrics("", total, qt_total)
    return IntervalResult(
        begin=T0,
        end=T0 + timedelta(seconds=duration_s),
        global_metrics=global_metrics,
        classes=per_class,
    )


# A:55%, B:39%, C:6% of base traffic; D and E appear only in comp, each
# taking a third of it while A/B/C keep their absolute volume.
AE_BASE = {"A": (3000, 54.0), "B": (2100, 108.0), "C": (300, 54.0)}
AE_COMP = {**AE_BASE, "D": (5400, 105.0), "E": (5400, 105.0)}


@pytest.fixture()
def ae_windows() -> tuple[IntervalResult, IntervalResult]:
    return interval_result(AE_BASE), interval_result(AE_COMP)


@pytest.fixture()
def reporter() -> RecordingReporter:
    return RecordingReporter()
