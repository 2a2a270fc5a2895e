import numpy as np
import pandas as pd


def pct(s: pd.Series, p: float) -> float:
    """
    NaN-safe percentile helper.
    """
    x = s.dropna().to_numpy(dtype=float)
    return float(np.nanpercentile(x, p)) if len(x) else float("nan")


def safe_rate(value: float, denominator: float) -> float:
    """
    value / denominator, or 0.0 when the denominator is not positive.
    """
    if denominator <= 0:
        return 0.0
    return value / denominator
