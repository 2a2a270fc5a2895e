from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

from common.model.constants import QUERY_TIME
from common.model.types import ClassId, Fingerprint


@dataclass(frozen=True, slots=True)
class TimeStats:
    sum: float
    min: float
    avg: float
    med: float
    p95: float
    max: float


@dataclass(frozen=True, slots=True)
class NumberStats:
    sum: int
    min: int
    avg: float
    med: float
    p95: float
    max: int


@dataclass(frozen=True, slots=True)
class BoolStats:
    sum: int


@dataclass(frozen=True, slots=True)
class MetricSet:
    time_metrics: Mapping[str, TimeStats] = field(default_factory=dict)
    number_metrics: Mapping[str, NumberStats] = field(default_factory=dict)
    bool_metrics: Mapping[str, BoolStats] = field(default_factory=dict)

    @property
    def query_time_sum(self) -> float:
        stats = self.time_metrics.get(QUERY_TIME)
        return stats.sum if stats is not None else 0.0


@dataclass(frozen=True, slots=True)
class QueryExample:
    """
    Slowest sample of a class; ts is already shifted by the UTC offset.
    """

    query_time: float
    db: str
    query: str
    ts: str


@dataclass(frozen=True, slots=True)
class ClassMetrics:
    """
    Aggregate of every admitted event sharing one fingerprint.
    The global aggregate uses an empty id and fingerprint.
    """

    id: ClassId
    fingerprint: Fingerprint
    total_queries: int
    unique_queries: int
    outliers: int
    metrics: MetricSet
    example: QueryExample | None = None

    @classmethod
    def empty(cls, class_id: ClassId = "", fingerprint: Fingerprint = "") -> "ClassMetrics":
        return cls(
            id=class_id,
            fingerprint=fingerprint,
            total_queries=0,
            unique_queries=0,
            outliers=0,
            metrics=MetricSet(),
        )


@dataclass(frozen=True, slots=True)
class AggregateResult:
    global_metrics: ClassMetrics
    classes: Mapping[ClassId, ClassMetrics]
    rate_limit: int = 1


@dataclass(frozen=True, slots=True)
class ProcessStats:
    events_read: int = 0
    events_admitted: int = 0
    invalid_timestamps: int = 0
    fingerprint_crashes: int = 0


@dataclass(frozen=True, slots=True)
class IntervalResult:
    """
    One aggregated window. begin/end are the observed bounds, which can be
    narrower than the requested window. begin is None if nothing was
    admitted, which makes the duration zero.
    """

    begin: datetime | None
    end: datetime | None
    global_metrics: ClassMetrics
    classes: Mapping[ClassId, ClassMetrics]
    rate_limit: int = 1
    stats: ProcessStats = field(default_factory=ProcessStats)

    @property
    def duration_seconds(self) -> float:
        if self.begin is None or self.end is None:
            return 0.0
        return (self.end - self.begin).total_seconds()
