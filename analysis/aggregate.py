from datetime import timedelta

import pandas as pd

from analysis import dfkeys as K
from common.model.constants import EXAMPLE_TS_FORMAT, QUERY_TIME
from common.model.slowlog import (
    AggregateResult,
    BoolStats,
    ClassMetrics,
    MetricSet,
    NumberStats,
    QueryExample,
    TimeStats,
)
from common.model.types import ClassId, Fingerprint
from common.parse.time import parse_slowlog_ts
from common.support.reporting import NullReporter, Reporter
from common.support.stats import pct, safe_rate
from parsers.slowlog.records import SlowlogEvent


def _time_stats(
    vals: pd.Series, outlier: pd.Series, rate_limit: int, total: int
) -> TimeStats:
    v = vals.astype(float)
    present = v.notna()
    regular_sum = float(v[present & ~outlier].sum())
    outlier_sum = float(v[present & outlier].sum())
    total_sum = regular_sum * rate_limit + outlier_sum
    return TimeStats(
        sum=total_sum,
        min=float(v.min()),
        avg=safe_rate(total_sum, total),
        med=pct(v, 50),
        p95=pct(v, 95),
        max=float(v.max()),
    )


def _number_stats(
    vals: pd.Series, outlier: pd.Series, rate_limit: int, total: int
) -> NumberStats:
    v = vals.astype(float)
    present = v.notna()
    regular_sum = int(v[present & ~outlier].sum())
    outlier_sum = int(v[present & outlier].sum())
    total_sum = regular_sum * rate_limit + outlier_sum
    return NumberStats(
        sum=total_sum,
        min=int(v.min()),
        avg=safe_rate(float(total_sum), total),
        med=pct(v, 50),
        p95=pct(v, 95),
        max=int(v.max()),
    )


def _bool_stats(vals: pd.Series) -> BoolStats:
    return BoolStats(sum=int(vals.eq(True).sum()))


class EventAggregator:
    """
    Collects admitted events and reduces them to per-class and global stats.

    Metric rows are buffered as plain dicts and reduced once in finalize(),
    the same way the log parsers build their frames. Query text is kept only
    for the slowest event of each class; rows carry a hash of it.
    """

    def __init__(
        self,
        *,
        utc_offset: timedelta = timedelta(0),
        outlier_time: float = 0.0,
        reporter: Reporter | None = None,
    ):
        self._utc_offset = utc_offset
        self._outlier_time = outlier_time
        self._rep: Reporter = reporter if reporter is not None else NullReporter()

        self._rows: list[dict[str, object]] = []
        self._fingerprints: dict[ClassId, Fingerprint] = {}
        self._examples: dict[ClassId, QueryExample] = {}
        self._time_names: set[str] = set()
        self._number_names: set[str] = set()
        self._bool_names: set[str] = set()

        self._rate_limit: int | None = None
        self._rate_limit_warned = False

    def add_event(
        self, event: SlowlogEvent, class_id: ClassId, fp: Fingerprint
    ) -> None:
        self._check_rate_limit(event)

        query_time = event.time_metrics.get(QUERY_TIME, 0.0)
        outlier = self._outlier_time > 0 and query_time > self._outlier_time

        row: dict[str, object] = {
            K.CLASS_ID: class_id,
            K.QUERY_HASH: hash(event.query),
            K.OUTLIER: outlier,
        }
        for name, val in event.time_metrics.items():
            row[K.TIME_PREFIX + name] = val
            self._time_names.add(name)
        for name, ival in event.number_metrics.items():
            row[K.NUMBER_PREFIX + name] = ival
            self._number_names.add(name)
        for name, bval in event.bool_metrics.items():
            row[K.BOOL_PREFIX + name] = bval
            self._bool_names.add(name)

        self._rows.append(row)
        self._fingerprints.setdefault(class_id, fp)
        self._keep_slowest(class_id, event, query_time)

    def _keep_slowest(
        self, class_id: ClassId, event: SlowlogEvent, query_time: float
    ) -> None:
        best = self._examples.get(class_id)
        if best is not None and query_time <= best.query_time:
            return
        self._examples[class_id] = QueryExample(
            query_time=query_time, db=event.db, query=event.query, ts=event.ts
        )

    def _check_rate_limit(self, event: SlowlogEvent) -> None:
        if self._rate_limit is None:
            self._rate_limit = event.rate_limit
            return
        if event.rate_limit != self._rate_limit and not self._rate_limit_warned:
            self._rep.warning(
                f"rate limit changed from {self._rate_limit} to {event.rate_limit} "
                f"at line {event.lineno}; keeping {self._rate_limit}"
            )
            self._rate_limit_warned = True

    def finalize(self) -> AggregateResult:
        rate_limit = self._rate_limit or 1

        if not self._rows:
            return AggregateResult(
                global_metrics=ClassMetrics.empty(), classes={}, rate_limit=rate_limit
            )

        df = pd.DataFrame(self._rows)

        global_metrics = self._summarize(df, "", "", rate_limit, with_example=False)

        classes: dict[ClassId, ClassMetrics] = {}
        for cid, g in df.groupby(K.CLASS_ID, sort=True):
            class_id = str(cid)
            classes[class_id] = self._summarize(
                g, class_id, self._fingerprints[class_id], rate_limit, with_example=True
            )

        return AggregateResult(
            global_metrics=global_metrics, classes=classes, rate_limit=rate_limit
        )

    def _summarize(
        self,
        g: pd.DataFrame,
        class_id: ClassId,
        fp: Fingerprint,
        rate_limit: int,
        *,
        with_example: bool,
    ) -> ClassMetrics:
        outlier = g[K.OUTLIER].astype(bool)
        n_outliers = int(outlier.sum())
        n_regular = len(g) - n_outliers
        total = n_regular * rate_limit + n_outliers

        time_metrics: dict[str, TimeStats] = {}
        for name in sorted(self._time_names):
            col = K.TIME_PREFIX + name
            if col in g.columns and g[col].notna().any():
                time_metrics[name] = _time_stats(g[col], outlier, rate_limit, total)

        number_metrics: dict[str, NumberStats] = {}
        for name in sorted(self._number_names):
            col = K.NUMBER_PREFIX + name
            if col in g.columns and g[col].notna().any():
                number_metrics[name] = _number_stats(
                    g[col], outlier, rate_limit, total
                )

        bool_metrics: dict[str, BoolStats] = {}
        for name in sorted(self._bool_names):
            col = K.BOOL_PREFIX + name
            if col in g.columns and g[col].notna().any():
                bool_metrics[name] = _bool_stats(g[col])

        return ClassMetrics(
            id=class_id,
            fingerprint=fp,
            total_queries=total,
            unique_queries=int(g[K.QUERY_HASH].nunique()),
            outliers=n_outliers,
            metrics=MetricSet(
                time_metrics=time_metrics,
                number_metrics=number_metrics,
                bool_metrics=bool_metrics,
            ),
            example=self._example(class_id) if with_example else None,
        )

    def _example(self, class_id: ClassId) -> QueryExample:
        raw = self._examples[class_id]
        return QueryExample(
            query_time=raw.query_time,
            db=raw.db,
            query=raw.query,
            ts=self._example_ts(raw.ts),
        )

    def _example_ts(self, raw: str) -> str:
        if not raw:
            return ""
        try:
            ts = parse_slowlog_ts(raw)
        except ValueError:
            return raw
        return (ts + self._utc_offset).strftime(EXAMPLE_TS_FORMAT)
