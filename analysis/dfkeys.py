"""
Avoids loose strings and makes refactors safer.
"""

# ---- Admitted event rows ----
CLASS_ID = "class_id"
FINGERPRINT = "fingerprint"
QUERY_HASH = "query_hash"
OUTLIER = "outlier"

TIME_PREFIX = "time:"
NUMBER_PREFIX = "number:"
BOOL_PREFIX = "bool:"

# ---- Normalized / merged metrics ----
ID = "id"
QPS = "qps"
LOAD = "load"
COUNT_PCT = "count_pct"
EXECTIME_PCT = "exectime_pct"
METRIC_COLS = [QPS, LOAD, COUNT_PCT, EXECTIME_PCT]

IN_BASE = "in_base"
IN_COMP = "in_comp"
OBSERVED = "observed"

BASE_PREFIX = "base_"
COMP_PREFIX = "comp_"
DELTA_PREFIX = "delta_"

# ---- Ranked output ----
RANK = "rank"
ABS_DELTA = "abs_delta"
