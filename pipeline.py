from __future__ import annotations

from datetime import timedelta

import pandas as pd

from analysis import dfkeys as K
from analysis.delta import MergedEntry, delta, delta_frame, merge, merged_frame
from analysis.interval import IntervalProcessor
from common.model.config import CompareConfig
from common.model.constants import BASE_LABEL, COMP_LABEL
from common.model.results import PipelineOutput, RankedDeltas, WindowResults
from common.model.slowlog import IntervalResult
from common.model.types import ClassId, Interval, Metric, WindowLabel
from common.support.reporting import NullReporter, Reporter
from export.console import observed
from parsers.slowlog import SlowlogStartError


class WindowError(RuntimeError):
    """A window could not be processed; the comparison cannot go on."""

    def __init__(self, label: WindowLabel, interval: Interval, cause: Exception):
        super().__init__(f"{label} window: {interval.file}: {cause}")
        self.label = label
        self.interval = interval


def _process_window(
    label: WindowLabel,
    interval: Interval,
    processor: IntervalProcessor,
    reporter: Reporter,
) -> IntervalResult:
    reporter.info(
        f"Processing {interval.file} since {interval.since} until {interval.until}..."
    )
    try:
        res = processor.process(interval)
    except (OSError, SlowlogStartError) as e:
        raise WindowError(label, interval, e) from e

    reporter.info(f"{label} duration: {res.duration_seconds:g}s")
    return res


def _label_merged(
    table: pd.DataFrame, windows: WindowResults
) -> pd.DataFrame:
    """
    Adds the observed category and fingerprint text to the merged table.
    """
    out = table.copy()
    fps = {cid: c.fingerprint for cid, c in windows.comp.classes.items()}
    fps.update({cid: c.fingerprint for cid, c in windows.base.classes.items()})

    out[K.FINGERPRINT] = out[K.ID].map(fps).fillna("")
    out[K.OBSERVED] = [
        observed(MergedEntry(in_base=bool(b), in_comp=bool(c)))
        for b, c in zip(out[K.IN_BASE], out[K.IN_COMP])
    ]
    return out


def _rank(
    metric: Metric, merged: dict[ClassId, MergedEntry], merged_table: pd.DataFrame
) -> RankedDeltas:
    table = delta_frame(merged, metric).rename(
        columns={c: f"{K.DELTA_PREFIX}{c}" for c in K.METRIC_COLS}
    )
    info = merged_table[[K.ID, K.OBSERVED, K.FINGERPRINT]]
    table = table.merge(info, on=K.ID, how="left")
    table.insert(0, K.RANK, range(1, len(table) + 1))
    return RankedDeltas(metric=metric, deltas=delta(merged, metric), table=table)


def execute_pipeline(
    cfg: CompareConfig, *, reporter: Reporter | None = None
) -> PipelineOutput:
    """
    Orchestrates the comparison: Process base -> Process comp -> Merge -> Rank.
    """
    rep: Reporter = reporter if reporter is not None else NullReporter()

    processor = IntervalProcessor(
        utc_offset=timedelta(hours=cfg.utc_offset_hours),
        outlier_time=cfg.outlier_time,
        reporter=rep,
    )

    base = _process_window(BASE_LABEL, Interval.of(cfg.file, cfg.base), processor, rep)
    comp = _process_window(COMP_LABEL, Interval.of(cfg.file, cfg.comp), processor, rep)
    windows = WindowResults(base=base, comp=comp)

    merged = merge(base, comp)
    merged_table = _label_merged(merged_frame(base, comp), windows)

    rankings = tuple(_rank(metric, merged, merged_table) for metric in cfg.order_by)

    return PipelineOutput(
        windows=windows,
        merged=merged,
        merged_table=merged_table,
        rankings=rankings,
    )
