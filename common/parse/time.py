from datetime import datetime, timezone

from common.model.constants import RANGE_TS_FORMAT, SLOWLOG_TS_FORMAT
from common.model.types import TimeRange


def parse_slowlog_ts(raw: str) -> datetime:
    """
    Parse a `# Time:` value.

    Accepts the classic YYMMDD HH:MM:SS form (hour may be space padded) and
    the ISO-8601 form written by MySQL 5.7+. Aware values are converted to
    naive UTC so they compare with the naive window bounds.
    Raises ValueError if neither form matches.
    """
    s = raw.strip()
    try:
        return datetime.strptime(s, SLOWLOG_TS_FORMAT)
    except ValueError as classic_err:
        if "T" not in s:
            raise classic_err

    ts = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


def parse_range_ts(raw: str) -> datetime:
    try:
        return datetime.strptime(raw.strip(), RANGE_TS_FORMAT)
    except ValueError as e:
        raise ValueError(f"invalid timestamp: '{raw}': {e}") from e


def parse_time_range(raw: str) -> TimeRange:
    """
    Parse 'since/until', e.g. 2017-01-01T00:00:00/2017-01-01T01:00:00.
    """
    parts = raw.split("/")
    if len(parts) != 2:
        raise ValueError(
            f"invalid time range: '{raw}': split returned {len(parts)} timestamps, expected 2"
        )
    return TimeRange(since=parse_range_ts(parts[0]), until=parse_range_ts(parts[1]))
