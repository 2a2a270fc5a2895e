SLOWLOG_TS_FORMAT: str = "%y%m%d %H:%M:%S"  # YYMMDD HH:MM:SS
RANGE_TS_FORMAT: str = "%Y-%m-%dT%H:%M:%S"
EXAMPLE_TS_FORMAT: str = "%Y-%m-%d %H:%M:%S"

QUERY_TIME: str = "Query_time"

BASE_LABEL: str = "base"
COMP_LABEL: str = "comp"

OBSERVED_BOTH: str = "base"
OBSERVED_NEW: str = "new"
OBSERVED_MISSING: str = "miss"
OBSERVED_UNKNOWN: str = "?"

ADMIN_COMMAND_PREFIX: str = "administrator command: "
