from dataclasses import dataclass
from pathlib import Path

from common.model.types import ALL_METRICS, Metric, TimeRange


@dataclass(frozen=True, slots=True)
class CompareConfig:
    file: Path
    base: TimeRange
    comp: TimeRange
    min_delta: float = 1.0
    order_by: tuple[Metric, ...] = ALL_METRICS
    utc_offset_hours: float = 0.0
    # @@global.slow_query_log_always_write_time
    outlier_time: float = 10.0
    out_dir: Path | None = None


@dataclass(frozen=True, slots=True)
class AppConfig:
    cfg: CompareConfig
    open_plot: bool
