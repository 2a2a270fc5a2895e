from common.parse.regexes import (
    ADMIN_COMMAND_RE,
    METRIC_PAIR_RE,
    TIME_LINE_RE,
    USER_HOST_RE,
)

from .records import MetricsParsed, UserHostParsed

_RATE_TYPE_KEY = "Log_slow_rate_type"
_RATE_LIMIT_KEY = "Log_slow_rate_limit"
_SCHEMA_KEY = "Schema"
_TIME_SUFFIXES = ("_time", "_wait")


def decode_time(line: str) -> str | None:
    m = TIME_LINE_RE.match(line)
    return m.group("ts") if m else None


def decode_user_host(line: str) -> UserHostParsed | None:
    m = USER_HOST_RE.match(line)
    if not m:
        return None

    host = m.group("host") or (m.group("ip") or "")
    return UserHostParsed(user=m.group("user"), host=host, rest=m.group("rest"))


def decode_admin_command(line: str) -> str | None:
    m = ADMIN_COMMAND_RE.match(line)
    return m.group("cmd") if m else None


def decode_metrics(line: str) -> MetricsParsed:
    """
    Decode every `Key: value` pair on a header line.

    Pure decode: line -> typed metrics. Values that fit none of the metric
    kinds are ignored, except Schema and the Percona rate limit pair.
    """
    time_metrics: dict[str, float] = {}
    number_metrics: dict[str, int] = {}
    bool_metrics: dict[str, bool] = {}
    db: str | None = None
    rate_type: str | None = None
    rate_limit: int | None = None

    for m in METRIC_PAIR_RE.finditer(line):
        key = m.group("key")
        value = m.group("value")

        if key == _SCHEMA_KEY:
            db = value
            continue
        if key == _RATE_TYPE_KEY:
            rate_type = value
            continue
        if key == _RATE_LIMIT_KEY:
            if value.isdigit():
                rate_limit = int(value)
            continue

        if key.endswith(_TIME_SUFFIXES):
            try:
                time_metrics[key] = float(value)
            except ValueError:
                pass
            continue

        if value in ("Yes", "No"):
            bool_metrics[key] = value == "Yes"
            continue

        if value.isdigit():
            number_metrics[key] = int(value)

    return MetricsParsed(
        time_metrics=time_metrics,
        number_metrics=number_metrics,
        bool_metrics=bool_metrics,
        db=db,
        rate_type=rate_type,
        rate_limit=rate_limit,
    )
