from pathlib import Path

import pandas as pd

# rates and shares keep 10 significant digits
CSV_FLOAT_FORMAT = "%.10g"


def write_table(df: pd.DataFrame, path: Path) -> Path:
    """
    Writes df as CSV without its index, creating parent directories.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False, float_format=CSV_FLOAT_FORMAT)
    return path
