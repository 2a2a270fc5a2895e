from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import cast

import numpy as np
import pandas as pd

from analysis import dfkeys as K
from common.model.slowlog import IntervalResult
from common.model.types import ClassId, Metric
from common.support.stats import safe_rate


@dataclass(frozen=True, slots=True)
class Metrics:
    """
    Window-normalized metrics of one class, or the signed delta between two.
    count_pct and exectime_pct are fractions (0..1), not percentages.
    """

    id: ClassId = ""
    qps: float = 0.0
    load: float = 0.0
    count_pct: float = 0.0
    exectime_pct: float = 0.0


@dataclass(frozen=True, slots=True)
class MergedEntry:
    in_base: bool = False
    in_comp: bool = False
    base: Metrics = field(default_factory=Metrics)
    comp: Metrics = field(default_factory=Metrics)


_FRAME_COLS = pd.Index([K.ID, *K.METRIC_COLS])


def metric_value(m: Metrics, metric: Metric) -> float:
    match metric:
        case Metric.QPS:
            return m.qps
        case Metric.LOAD:
            return m.load
        case Metric.COUNT:
            return m.count_pct
        case Metric.EXECTIME:
            return m.exectime_pct


def normalize(result: IntervalResult) -> pd.DataFrame:
    """
    Per-class rates over the window's observed duration and shares of the
    window's own totals.
    """
    duration = result.duration_seconds
    total_queries = float(result.global_metrics.total_queries)
    total_exec_time = result.global_metrics.metrics.query_time_sum

    rows = [
        {
            K.ID: cid,
            K.QPS: safe_rate(float(c.total_queries), duration),
            K.LOAD: safe_rate(c.metrics.query_time_sum, duration),
            K.COUNT_PCT: safe_rate(float(c.total_queries), total_queries),
            K.EXECTIME_PCT: safe_rate(c.metrics.query_time_sum, total_exec_time),
        }
        for cid, c in result.classes.items()
    ]
    return pd.DataFrame(rows, columns=_FRAME_COLS)


def _prefixed_map(prefix: str, cols: list[str]) -> dict[str, str]:
    return {c: f"{prefix}{c}" for c in cols}


def merged_frame(base: IntervalResult, comp: IntervalResult) -> pd.DataFrame:
    """
    Outer join of both windows' normalized metrics on class id, with
    in_base/in_comp flags. The missing side of a one-window class is zero.
    """
    b = normalize(base).rename(columns=_prefixed_map(K.BASE_PREFIX, K.METRIC_COLS))
    c = normalize(comp).rename(columns=_prefixed_map(K.COMP_PREFIX, K.METRIC_COLS))

    joined = b.merge(c, on=K.ID, how="outer", indicator=True)

    merge_s = joined["_merge"].astype("string")
    joined[K.IN_BASE] = merge_s.isin(["left_only", "both"])
    joined[K.IN_COMP] = merge_s.isin(["right_only", "both"])
    joined = joined.drop(columns=["_merge"])

    metric_cols = [f"{p}{m}" for p in (K.BASE_PREFIX, K.COMP_PREFIX) for m in K.METRIC_COLS]
    joined[metric_cols] = joined[metric_cols].astype(float).fillna(0.0)

    return cast(
        pd.DataFrame, joined.sort_values(K.ID, kind="mergesort").reset_index(drop=True)
    )


def _side(row: pd.Series, prefix: str) -> Metrics:
    return Metrics(
        qps=float(row[f"{prefix}{K.QPS}"]),
        load=float(row[f"{prefix}{K.LOAD}"]),
        count_pct=float(row[f"{prefix}{K.COUNT_PCT}"]),
        exectime_pct=float(row[f"{prefix}{K.EXECTIME_PCT}"]),
    )


def merge(base: IntervalResult, comp: IntervalResult) -> dict[ClassId, MergedEntry]:
    """
    One entry per class id seen in either window.
    """
    if not base.classes and not comp.classes:
        return {}

    joined = merged_frame(base, comp)
    return {
        str(row[K.ID]): MergedEntry(
            in_base=bool(row[K.IN_BASE]),
            in_comp=bool(row[K.IN_COMP]),
            base=_side(row, K.BASE_PREFIX),
            comp=_side(row, K.COMP_PREFIX),
        )
        for _, row in joined.iterrows()
    }


def diff(base: np.ndarray, comp: np.ndarray) -> np.ndarray:
    # 20 -> 40 == 20 - 40 = -20 * -1 =  20 (increase)
    # 40 -> 20 == 40 - 20 =  20 * -1 = -20 (decrease)
    #  0 -> 40 ==  0 - 40 = -40 * -1 =  40 (increase)
    return np.where(base == comp, 0.0, (base - comp) * -1.0)


def delta_frame(merged: Mapping[ClassId, MergedEntry], order_by: Metric | str) -> pd.DataFrame:
    """
    Signed comp-vs-base deltas, biggest absolute change of `order_by` first.
    Equal magnitudes are ordered by class id so the ranking is total.
    """
    try:
        metric = Metric(order_by)
    except ValueError:
        raise ValueError(f"invalid orderBy: {order_by}") from None

    ids = list(merged)
    out = pd.DataFrame({K.ID: pd.Series(ids, dtype="object")})
    for col, attr in zip(K.METRIC_COLS, ("qps", "load", "count_pct", "exectime_pct")):
        base = np.array([getattr(merged[i].base, attr) for i in ids], dtype=float)
        comp = np.array([getattr(merged[i].comp, attr) for i in ids], dtype=float)
        out[col] = diff(base, comp)

    active = {
        Metric.QPS: K.QPS,
        Metric.LOAD: K.LOAD,
        Metric.COUNT: K.COUNT_PCT,
        Metric.EXECTIME: K.EXECTIME_PCT,
    }[metric]
    out[K.ABS_DELTA] = out[active].abs()

    # stable two-pass sort
    out = out.sort_values(by=K.ID, ascending=True, kind="mergesort")
    out = out.sort_values(by=K.ABS_DELTA, ascending=False, kind="mergesort")
    return cast(pd.DataFrame, out.drop(columns=[K.ABS_DELTA]).reset_index(drop=True))


def delta(merged: Mapping[ClassId, MergedEntry], order_by: Metric | str) -> list[Metrics]:
    """
    Raises ValueError for an order_by outside qps/load/count/exectime.
    """
    out = delta_frame(merged, order_by)
    return [
        Metrics(
            id=str(row[K.ID]),
            qps=float(row[K.QPS]),
            load=float(row[K.LOAD]),
            count_pct=float(row[K.COUNT_PCT]),
            exectime_pct=float(row[K.EXECTIME_PCT]),
        )
        for _, row in out.iterrows()
    ]
