from dataclasses import dataclass, field


@dataclass(slots=True)
class SlowlogEvent:
    lineno: int = 0
    ts: str = ""
    admin: bool = False
    query: str = ""
    user: str = ""
    host: str = ""
    db: str = ""
    time_metrics: dict[str, float] = field(default_factory=dict)
    number_metrics: dict[str, int] = field(default_factory=dict)
    bool_metrics: dict[str, bool] = field(default_factory=dict)
    rate_type: str = ""
    rate_limit: int = 1


@dataclass(frozen=True, slots=True)
class ParserOptions:
    # e.g. frozenset({"Quit"}) drops "# administrator command: Quit;" events
    filter_admin_commands: frozenset[str] = frozenset()


@dataclass(frozen=True, slots=True)
class UserHostParsed:
    user: str
    host: str
    rest: str


@dataclass(frozen=True, slots=True)
class MetricsParsed:
    time_metrics: dict[str, float]
    number_metrics: dict[str, int]
    bool_metrics: dict[str, bool]
    db: str | None
    rate_type: str | None
    rate_limit: int | None


class SlowlogStartError(RuntimeError):
    """The parser could not start reading its file."""
