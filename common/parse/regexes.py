import re
from dataclasses import dataclass


def _compile(pattern: str, flags: int = 0) -> re.Pattern[str]:
    return re.compile(pattern, flags)


@dataclass(frozen=True, slots=True)
class _SlowlogRegexes:
    time_line: re.Pattern[str]
    user_host: re.Pattern[str]
    metric_pair: re.Pattern[str]
    admin_command: re.Pattern[str]
    use_db: re.Pattern[str]
    set_timestamp: re.Pattern[str]
    server_banner: re.Pattern[str]


@dataclass(frozen=True, slots=True)
class _FingerprintRegexes:
    token: re.Pattern[str]
    hex_literal: re.Pattern[str]
    number: re.Pattern[str]
    in_list: re.Pattern[str]
    values_list: re.Pattern[str]
    limit: re.Pattern[str]
    call: re.Pattern[str]
    use_db: re.Pattern[str]
    whitespace: re.Pattern[str]


SLOWLOG = _SlowlogRegexes(
    time_line=_compile(r"^#\s+Time:\s*(?P<ts>.*?)\s*$"),
    user_host=_compile(
        r"^#\s+User@Host:\s*(?P<user>[^\[\s]*)(?:\[[^\]]*\])?\s*@\s*(?P<host>[^\s\[]*)\s*(?:\[(?P<ip>[^\]]*)\])?(?P<rest>.*)$"
    ),
    metric_pair=_compile(r"(?P<key>\w+):\s+(?P<value>[^\s]+)"),
    admin_command=_compile(r"^#\s+administrator command:\s*(?P<cmd>\w+);?\s*$"),
    use_db=_compile(r"^use\s+`?(?P<db>[^`;\s]+)`?\s*;\s*$", re.IGNORECASE),
    set_timestamp=_compile(r"^SET\s+timestamp\s*=\s*\d+\s*;\s*$", re.IGNORECASE),
    server_banner=_compile(
        r"^(?:\S+, Version: .*started with:|Tcp port: .*|Time\s+Id\s+Command\s+Argument)\s*$"
    ),
)

FINGERPRINT = _FingerprintRegexes(
    # Leftmost alternative wins, so quotes inside comments and comment
    # markers inside strings are consumed by the enclosing token.
    token=_compile(
        r"(?P<ident>`[^`]*`)"
        r"|(?P<str>'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\")"
        r"|(?P<block>/\*.*?\*/)"
        r"|(?P<line>(?:--\s|#)[^\n]*)"
        r"|(?P<stray>['\"`])",
        re.DOTALL,
    ),
    hex_literal=_compile(r"\b0x[0-9a-f]+\b"),
    number=_compile(r"(?<![\w.])-?\d+(?:\.\d+)?(?:e[-+]?\d+)?(?!\w)"),
    in_list=_compile(r"\bin\s*\(\s*\?\s*(?:,\s*\?\s*)*\)"),
    values_list=_compile(r"\bvalues?\s*(?:\(\s*[^()]*\)\s*,?\s*)+"),
    limit=_compile(r"\blimit\s+\?\s*(?:,|\boffset\b)\s*\?"),
    call=_compile(r"^call\s+(?P<sp>[\w.`]+)\s*\(.*\)$", re.DOTALL),
    use_db=_compile(r"^use\s+\S+$"),
    whitespace=_compile(r"\s+"),
)

TIME_LINE_RE: re.Pattern[str] = SLOWLOG.time_line
USER_HOST_RE: re.Pattern[str] = SLOWLOG.user_host
METRIC_PAIR_RE: re.Pattern[str] = SLOWLOG.metric_pair
ADMIN_COMMAND_RE: re.Pattern[str] = SLOWLOG.admin_command
USE_DB_RE: re.Pattern[str] = SLOWLOG.use_db
SET_TIMESTAMP_RE: re.Pattern[str] = SLOWLOG.set_timestamp
SERVER_BANNER_RE: re.Pattern[str] = SLOWLOG.server_banner
