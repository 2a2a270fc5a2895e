import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TextIO

from analysis.delta import MergedEntry, Metrics, metric_value
from common.model.constants import (
    OBSERVED_BOTH,
    OBSERVED_MISSING,
    OBSERVED_NEW,
    OBSERVED_UNKNOWN,
)
from common.model.slowlog import IntervalResult
from common.model.types import ClassId, Metric

HEADER_LINE_FMT = "#   %7s  %6s  %6s %5s %16s %s"
DELTA_LINE_FMT = "%-3d %7s  %6s  %6s %5s %16s %s"


def format_value(val: float, metric: Metric) -> str:
    """
    Percentages are scaled x100 and always get two decimals; other values
    are truncated to an int once |val| >= 1.
    """
    if val == 0:
        return "0"
    pct = metric.is_percentage
    if pct:
        val *= 100
    if abs(val) < 1 or pct:
        return f"{val:.2f}"
    return str(int(val))


def abs_delta(d: Metrics, metric: Metric) -> float:
    """
    Magnitude in display units, comparable with the min-delta threshold.
    """
    v = abs(metric_value(d, metric))
    return v * 100 if metric.is_percentage else v


def observed(entry: MergedEntry | None) -> str:
    if entry is None:
        return OBSERVED_UNKNOWN
    if entry.in_base and entry.in_comp:
        return OBSERVED_BOTH
    if entry.in_comp:  # but not in base
        return OBSERVED_NEW
    if entry.in_base:  # but not in comp
        return OBSERVED_MISSING
    return OBSERVED_UNKNOWN


@dataclass(frozen=True, slots=True)
class DeltaView:
    """
    Lookups needed to render one ranking of deltas.
    """

    metric: Metric
    base: IntervalResult
    comp: IntervalResult
    merged: Mapping[ClassId, MergedEntry]

    def delta(self, d: Metrics) -> str:
        return format_value(metric_value(d, self.metric), self.metric)

    def base_value(self, class_id: ClassId) -> str:
        m = self.merged.get(class_id)
        if m is None:
            return "0"
        return format_value(metric_value(m.base, self.metric), self.metric)

    def comp_value(self, class_id: ClassId) -> str:
        m = self.merged.get(class_id)
        if m is None:
            return "0"
        return format_value(metric_value(m.comp, self.metric), self.metric)

    def observed(self, class_id: ClassId) -> str:
        return observed(self.merged.get(class_id))

    def fingerprint(self, class_id: ClassId) -> str:
        c = self.base.classes.get(class_id) or self.comp.classes.get(class_id)
        return c.fingerprint if c is not None else ""


def render_report(
    deltas: Sequence[Metrics], view: DeltaView, min_delta: float
) -> list[str]:
    """
    Header plus one line per delta, stopping at the first delta smaller
    than min_delta. deltas must already be ranked by view.metric.
    """
    lines = [
        HEADER_LINE_FMT
        % ("-------", "------", "------", "-----", "----------------", "-----------"),
        HEADER_LINE_FMT % ("delta", "base", "comp", "obsrv", "ID", "fingerprint"),
        HEADER_LINE_FMT
        % ("-------", "------", "------", "-----", "----------------", "-----------"),
    ]
    for i, d in enumerate(deltas):
        if abs_delta(d, view.metric) < min_delta:
            break  # ranked, so every later delta is smaller too
        lines.append(
            DELTA_LINE_FMT
            % (
                i + 1,
                view.delta(d),
                view.base_value(d.id),
                view.comp_value(d.id),
                view.observed(d.id),
                d.id,
                view.fingerprint(d.id),
            )
        )
    return lines


class DeltaReportPresenter:
    """
    Prints ranked delta reports to stdout.
    """

    def __init__(self, min_delta: float, *, stream: TextIO | None = None):
        self.min_delta = min_delta
        self._stream = stream

    def present(self, deltas: Sequence[Metrics], view: DeltaView) -> None:
        out = self._stream or sys.stdout
        print(f"# {view.metric.value} delta", file=out)
        for line in render_report(deltas, view, self.min_delta):
            print(line, file=out)
        print("", file=out)
