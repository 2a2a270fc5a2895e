from parsers.slowlog.reader import SlowlogParser
from parsers.slowlog.records import ParserOptions, SlowlogEvent, SlowlogStartError

__all__ = [
    "SlowlogParser",
    "SlowlogEvent",
    "ParserOptions",
    "SlowlogStartError",
]
