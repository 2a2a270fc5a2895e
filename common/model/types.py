from pathlib import Path
from datetime import datetime
from dataclasses import dataclass
from enum import StrEnum

type ClassId = str
type Fingerprint = str
type WindowLabel = str


class Metric(StrEnum):
    """
    Ranking metrics. count and exectime are shares of the window total.
    """

    QPS = "qps"
    LOAD = "load"
    COUNT = "count"
    EXECTIME = "exectime"

    @property
    def is_percentage(self) -> bool:
        return self in (Metric.COUNT, Metric.EXECTIME)


ALL_METRICS: tuple[Metric, ...] = (
    Metric.QPS,
    Metric.LOAD,
    Metric.COUNT,
    Metric.EXECTIME,
)


@dataclass(frozen=True, slots=True)
class TimeRange:
    since: datetime
    until: datetime


@dataclass(frozen=True, slots=True)
class Interval:
    """
    Half-open window [since, until) over one slow log file.
    """

    file: Path
    since: datetime
    until: datetime

    @classmethod
    def of(cls, file: Path, time_range: TimeRange) -> "Interval":
        return cls(file=file, since=time_range.since, until=time_range.until)
