from pathlib import Path

from dotenv import dotenv_values

from common.model.config import AppConfig, CompareConfig
from common.model.types import ALL_METRICS, Metric
from common.parse.time import parse_time_range


def _require_abs_path(var: str, raw: str | None) -> Path:
    if not raw:
        raise ValueError(f"Missing {var} in .env")
    p = Path(raw)
    if not p.is_absolute():
        raise ValueError(f"{var} must be an absolute path. Got: {raw}")
    return p


def _optional_abs_path(var: str, raw: str | None) -> Path | None:
    if not raw:
        return None
    return _require_abs_path(var, raw)


def _parse_bool(raw: str | None, default: bool = False) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _parse_float(var: str, raw: str | None, default: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{var} must be a number. Got: {raw}") from e


def _parse_order_by(raw: str | None) -> tuple[Metric, ...]:
    if not raw:
        return ALL_METRICS
    try:
        return tuple(Metric(x) for x in raw.split() if x)
    except ValueError as e:
        raise ValueError(f"ORDER_BY must be one of {[m.value for m in Metric]}") from e


def load_env_config(*, env_path: Path) -> AppConfig:
    """
    Loads config from .env and enforces that all configured paths are absolute.
    """
    values = dotenv_values(env_path) if env_path.exists() else {}
    if not values:
        raise ValueError(f"Missing or empty env file: {env_path}")

    # Slow log file
    file = _require_abs_path("SLOWLOG_FILE", values.get("SLOWLOG_FILE"))

    # Time windows
    base_raw = values.get("BASE_RANGE")
    comp_raw = values.get("COMP_RANGE")
    if not base_raw or not comp_raw:
        raise ValueError("Missing BASE_RANGE or COMP_RANGE in .env")

    cfg = CompareConfig(
        file=file,
        base=parse_time_range(base_raw),
        comp=parse_time_range(comp_raw),
        min_delta=_parse_float("MIN_DELTA", values.get("MIN_DELTA"), 1.0),
        order_by=_parse_order_by(values.get("ORDER_BY")),
        utc_offset_hours=_parse_float("UTC_OFFSET", values.get("UTC_OFFSET"), 0.0),
        outlier_time=_parse_float("OUTLIER_TIME", values.get("OUTLIER_TIME"), 10.0),
        out_dir=_optional_abs_path("OUT_DIR", values.get("OUT_DIR")),
    )

    open_plot = _parse_bool(values.get("OPEN_PLOT"), default=False)

    return AppConfig(cfg=cfg, open_plot=open_plot)
