from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from analysis import dfkeys as K
from common.model.types import Metric

_METRIC_COL = {
    Metric.QPS: K.QPS,
    Metric.LOAD: K.LOAD,
    Metric.COUNT: K.COUNT_PCT,
    Metric.EXECTIME: K.EXECTIME_PCT,
}


def plot_top_deltas(
    table: pd.DataFrame,
    metric: Metric,
    *,
    out_path: Path,
    top_n: int = 20,
    title: str = "",
) -> bool:
    """
    Horizontal bar chart of the first top_n rows of a ranked delta table.
    Returns False (and writes nothing) when the table is empty.
    """
    if table.empty:
        return False

    plot_df = table.head(top_n).iloc[::-1]
    col = K.DELTA_PREFIX + _METRIC_COL[metric]

    values = plot_df[col].to_numpy(dtype=float)
    if metric.is_percentage:
        values = values * 100
    labels = plot_df[K.ID].astype(str).to_list()
    colors = np.where(values >= 0, "tab:red", "tab:green").tolist()

    y = np.arange(len(plot_df))
    fig, ax = plt.subplots(figsize=(10, max(3.0, 0.35 * len(plot_df) + 1.5)))
    ax.barh(y, values, color=colors)
    ax.set_yticks(y)
    ax.set_yticklabels(labels, fontsize=8, family="monospace")
    ax.axvline(0.0, color="black", linewidth=0.8)
    unit = " (percentage points)" if metric.is_percentage else ""
    ax.set_xlabel(f"{metric.value} delta{unit}")
    ax.set_title(title or f"Top {len(plot_df)} {metric.value} deltas: comp vs base")
    fig.tight_layout()

    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(out_path)
    finally:
        plt.close(fig)
    return True
