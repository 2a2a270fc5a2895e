import argparse
from pathlib import Path

from common.model.config import AppConfig, CompareConfig
from common.model.types import ALL_METRICS, Metric, TimeRange
from common.parse.time import parse_time_range
from common.support.env import load_env_config


def _parse_range_arg(arg_value: str) -> TimeRange:
    """
    Parses a window argument in the format 'SINCE/UNTIL'.
    Example: --base 2024-01-01T10:00:00/2024-01-01T11:00:00
    """
    try:
        return parse_time_range(arg_value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="querydelta",
        description="Compare two time windows of a MySQL slow query log.",
    )

    parser.add_argument(
        "--env",
        default=None,
        help="Load the whole configuration from this .env file instead.",
    )

    parser.add_argument("--file", default=None, help="Slow query log file")

    parser.add_argument(
        "--base",
        type=_parse_range_arg,
        default=None,
        help="Baseline window, SINCE/UNTIL as YYYY-MM-DDTHH:MM:SS",
    )

    parser.add_argument(
        "--comp",
        type=_parse_range_arg,
        default=None,
        help="Comparison window, SINCE/UNTIL as YYYY-MM-DDTHH:MM:SS",
    )

    parser.add_argument(
        "--min-delta",
        type=float,
        default=1.0,
        help="Hide deltas smaller than this, in display units (default: 1)",
    )

    parser.add_argument(
        "--order-by",
        action="append",
        choices=[m.value for m in Metric],
        default=None,
        help="Metric to rank by. Can be repeated (default: all four)",
    )

    parser.add_argument(
        "--utc-offset",
        type=float,
        default=0.0,
        help="Hours added to example timestamps (default: 0)",
    )

    parser.add_argument(
        "--outlier-time",
        type=float,
        default=10.0,
        help="Query_time above which events are not rate-limit scaled (default: 10)",
    )

    parser.add_argument(
        "--out-dir",
        default=None,
        help="Directory to save CSV tables and charts",
    )

    parser.add_argument(
        "--open-plot",
        action="store_true",
        help="Automatically open the first generated chart when finished",
    )

    return parser


def parse_cli_args(argv: list[str] | None = None) -> AppConfig:
    """
    Parses command line arguments and returns a unified AppConfig object.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.env:
        return load_env_config(env_path=Path(args.env).expanduser().resolve())

    if not args.file or args.base is None or args.comp is None:
        parser.error("--file, --base and --comp are required unless --env is given")

    order_by = (
        tuple(Metric(m) for m in args.order_by) if args.order_by else ALL_METRICS
    )

    out_dir = Path(args.out_dir).expanduser().resolve() if args.out_dir else None

    cfg = CompareConfig(
        file=Path(args.file).expanduser(),
        base=args.base,
        comp=args.comp,
        min_delta=float(args.min_delta),
        order_by=order_by,
        utc_offset_hours=float(args.utc_offset),
        outlier_time=float(args.outlier_time),
        out_dir=out_dir,
    )

    return AppConfig(cfg=cfg, open_plot=bool(args.open_plot))
