from collections.abc import Callable
from datetime import datetime, timedelta

from analysis.aggregate import EventAggregator
from analysis.fingerprint import class_id as default_class_id
from analysis.fingerprint import fingerprint as default_fingerprint
from analysis.worker import Fingerprinter, SupervisedFingerprinter
from common.model.slowlog import IntervalResult, ProcessStats
from common.model.types import ClassId, Fingerprint, Interval
from common.parse.time import parse_slowlog_ts
from common.support.reporting import NullReporter, Reporter
from parsers.slowlog import ParserOptions, SlowlogParser

type ClassIdFn = Callable[[Fingerprint], ClassId]


class IntervalProcessor:
    """
    Reduces the events of one slow log window into an IntervalResult.

    The log is assumed chronological. Events before `since` are skipped,
    the first event at or after `until` ends the scan. An event without a
    timestamp continues the entry before it, so it is admitted only once
    the window has started.
    """

    def __init__(
        self,
        *,
        utc_offset: timedelta = timedelta(0),
        outlier_time: float = 0.0,
        fingerprinter: Fingerprinter = default_fingerprint,
        id_fn: ClassIdFn = default_class_id,
        reporter: Reporter | None = None,
        parser_options: ParserOptions | None = None,
    ):
        self._utc_offset = utc_offset
        self._outlier_time = outlier_time
        self._fingerprinter = fingerprinter
        self._id_fn = id_fn
        self._rep: Reporter = reporter if reporter is not None else NullReporter()
        self._parser_options = parser_options

    def process(self, interval: Interval) -> IntervalResult:
        """
        Raises OSError if the file cannot be opened and SlowlogStartError if
        the parser cannot start. Bad timestamps and fingerprinter crashes
        are logged and the event dropped.
        """
        aggregator = EventAggregator(
            utc_offset=self._utc_offset,
            outlier_time=self._outlier_time,
            reporter=self._rep,
        )

        begin: datetime | None = None
        end: datetime | None = None
        last_ts: datetime | None = None
        started = False

        events_read = 0
        events_admitted = 0
        invalid_timestamps = 0

        with (
            interval.file.open("r", encoding="utf-8", errors="replace") as fh,
            SupervisedFingerprinter(self._fingerprinter, reporter=self._rep) as fpr,
        ):
            parser = SlowlogParser(fh, self._parser_options)
            parser.start()

            try:
                for event in parser.events():
                    events_read += 1
                    ts: datetime | None = None

                    if not event.ts:
                        if not started:
                            continue  # keep looking for a known start ts
                        # after since, so presume this event is also before until
                    else:
                        try:
                            ts = parse_slowlog_ts(event.ts)
                        except ValueError as e:
                            invalid_timestamps += 1
                            self._rep.warning(
                                f"invalid slow log timestamp (recovering): {event.ts}: {e}"
                            )
                            continue
                        if ts < interval.since:
                            continue
                        if ts >= interval.until:
                            end = last_ts if last_ts is not None else ts
                            self._rep.info(f"last event at {end}")
                            break

                    # Event is in [since, until)
                    events_admitted += 1
                    fp = fpr.fingerprint(event.query)
                    if fp is not None:
                        aggregator.add_event(event, self._id_fn(fp), fp)

                    if not started:
                        started = True
                        begin = ts
                        self._rep.info(f"first event at {ts}")
                    if ts is not None:
                        last_ts = ts
                else:
                    end = last_ts
            finally:
                parser.stop()

            crashes = fpr.crashes

        agg = aggregator.finalize()
        return IntervalResult(
            begin=begin,
            end=end,
            global_metrics=agg.global_metrics,
            classes=agg.classes,
            rate_limit=agg.rate_limit,
            stats=ProcessStats(
                events_read=events_read,
                events_admitted=events_admitted,
                invalid_timestamps=invalid_timestamps,
                fingerprint_crashes=crashes,
            ),
        )
