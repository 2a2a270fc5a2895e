from dataclasses import dataclass
from pathlib import Path

from common.model.types import Metric


@dataclass(frozen=True, slots=True)
class OutputPaths:
    out_dir: Path

    # tables
    merged_csv: Path

    def delta_csv(self, metric: Metric) -> Path:
        return self.out_dir / f"delta_{metric.value}.csv"

    def delta_png(self, metric: Metric) -> Path:
        return self.out_dir / f"delta_{metric.value}.png"


def build_output_paths(out_dir: Path) -> OutputPaths:
    od = out_dir.resolve()
    return OutputPaths(
        out_dir=od,
        merged_csv=od / "merged.csv",
    )
