from dataclasses import dataclass

import pandas as pd

from analysis.delta import MergedEntry, Metrics
from common.model.slowlog import IntervalResult
from common.model.types import ClassId, Metric


@dataclass(frozen=True, slots=True)
class WindowResults:
    """The two aggregated windows."""

    base: IntervalResult
    comp: IntervalResult


@dataclass(frozen=True, slots=True)
class RankedDeltas:
    """Deltas of every class, ranked by one metric."""

    metric: Metric
    deltas: list[Metrics]
    table: pd.DataFrame


@dataclass(frozen=True, slots=True)
class PipelineOutput:
    """Container for all artifacts produced during the run."""

    windows: WindowResults
    merged: dict[ClassId, MergedEntry]
    merged_table: pd.DataFrame
    rankings: tuple[RankedDeltas, ...]
