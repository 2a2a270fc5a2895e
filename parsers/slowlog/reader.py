from collections.abc import Iterator
from typing import TextIO

from common.model.constants import ADMIN_COMMAND_PREFIX
from common.parse.regexes import SERVER_BANNER_RE, SET_TIMESTAMP_RE, USE_DB_RE

from .decode import decode_admin_command, decode_metrics, decode_time, decode_user_host
from .records import MetricsParsed, ParserOptions, SlowlogEvent, SlowlogStartError


class SlowlogParser:
    """
    Streams SlowlogEvent items out of an open slow log, in file order.

    An entry is a run of `#` header lines followed by query text; the next
    header line after query text closes it. MySQL only writes `# Time:`
    when the second changes, so many entries carry an empty ts.
    """

    def __init__(self, fh: TextIO, options: ParserOptions | None = None):
        self._fh = fh
        self._opts = options if options is not None else ParserOptions()
        self._started = False
        self._stopped = False

    def start(self) -> None:
        if self._started:
            raise SlowlogStartError("slow log parser already started")
        try:
            readable = self._fh.readable()
        except (OSError, ValueError) as e:
            raise SlowlogStartError(f"cannot read slow log: {e}") from e
        if not readable:
            raise SlowlogStartError("slow log file is not open for reading")
        self._started = True

    def stop(self) -> None:
        self._stopped = True

    def events(self) -> Iterator[SlowlogEvent]:
        if not self._started:
            raise SlowlogStartError("slow log parser not started")

        event = SlowlogEvent()
        query_lines: list[str] = []
        in_header = False

        for lineno, raw in enumerate(self._fh, start=1):
            if self._stopped:
                return

            line = raw.rstrip("\r\n")

            if line.startswith("#"):
                if query_lines:
                    done = self._finish(event, query_lines)
                    if done is not None:
                        yield done
                    event = SlowlogEvent()
                    query_lines = []
                    in_header = False
                if not in_header:
                    event.lineno = lineno
                    in_header = True
                self._apply_header(event, line, query_lines)
                continue

            stripped = line.strip()
            if not stripped or SERVER_BANNER_RE.match(line):
                continue

            if not query_lines:
                m = USE_DB_RE.match(stripped)
                if m:
                    event.db = m.group("db")
                    continue
                if SET_TIMESTAMP_RE.match(stripped):
                    continue
                if not in_header:
                    event.lineno = lineno

            query_lines.append(line)

        if query_lines and not self._stopped:
            done = self._finish(event, query_lines)
            if done is not None:
                yield done

    def _apply_header(
        self, event: SlowlogEvent, line: str, query_lines: list[str]
    ) -> None:
        ts = decode_time(line)
        if ts is not None:
            event.ts = ts
            return

        cmd = decode_admin_command(line)
        if cmd is not None:
            event.admin = True
            query_lines.append(f"{ADMIN_COMMAND_PREFIX}{cmd}")
            return

        user_host = decode_user_host(line)
        if user_host is not None:
            event.user = user_host.user
            event.host = user_host.host
            _apply_metrics(event, decode_metrics(user_host.rest))
            return

        _apply_metrics(event, decode_metrics(line))

    def _finish(
        self, event: SlowlogEvent, query_lines: list[str]
    ) -> SlowlogEvent | None:
        query = "\n".join(query_lines).strip()
        event.query = query.rstrip(";").rstrip()

        if event.admin:
            cmd = event.query.removeprefix(ADMIN_COMMAND_PREFIX)
            if cmd in self._opts.filter_admin_commands:
                return None
        return event


def _apply_metrics(event: SlowlogEvent, parsed: MetricsParsed) -> None:
    event.time_metrics.update(parsed.time_metrics)
    event.number_metrics.update(parsed.number_metrics)
    event.bool_metrics.update(parsed.bool_metrics)
    if parsed.db is not None:
        event.db = parsed.db
    if parsed.rate_type is not None:
        event.rate_type = parsed.rate_type
    if parsed.rate_limit is not None:
        event.rate_limit = parsed.rate_limit
