"""
Runs the fingerprinter on its own thread so a failure on one malformed
query is contained: the event is dropped, a fresh worker takes over, and
the aggregation loop carries on.
"""

import itertools
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass
from types import TracebackType

from analysis.fingerprint import fingerprint as default_fingerprint
from common.model.types import Fingerprint
from common.support.reporting import NullReporter, Reporter

type Fingerprinter = Callable[[str], Fingerprint]

_worker_seq = itertools.count(1)


@dataclass(frozen=True, slots=True)
class Fingerprinted:
    fingerprint: Fingerprint


@dataclass(frozen=True, slots=True)
class Crashed:
    error: BaseException


type WorkerReply = Fingerprinted | Crashed

_STOP = None


class FingerprintWorker:
    """
    One thread, one request in flight. Both queues hold a single slot, so
    submit() blocks until this worker has answered.
    """

    def __init__(self, fingerprinter: Fingerprinter = default_fingerprint):
        self._fingerprinter = fingerprinter
        self._requests: queue.Queue[str | None] = queue.Queue(maxsize=1)
        self._replies: queue.Queue[WorkerReply] = queue.Queue(maxsize=1)
        self._thread = threading.Thread(
            target=self._run,
            name=f"fingerprinter-{next(_worker_seq)}",
            daemon=True,
        )
        self._crashed = False

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> "FingerprintWorker":
        self._thread.start()
        return self

    def submit(self, query: str) -> WorkerReply:
        if self._crashed:
            raise RuntimeError("fingerprint worker has crashed; start a new one")
        self._requests.put(query)
        reply = self._replies.get()
        if isinstance(reply, Crashed):
            self._crashed = True
            self._thread.join()
        return reply

    def stop(self) -> None:
        if self._crashed or not self._thread.is_alive():
            return
        self._requests.put(_STOP)
        self._thread.join()

    def _run(self) -> None:
        while True:
            query = self._requests.get()
            if query is _STOP:
                return
            try:
                fp = self._fingerprinter(query)
            except BaseException as e:
                # submit() is waiting on the reply whatever was raised
                self._replies.put(Crashed(error=e))
                return
            self._replies.put(Fingerprinted(fingerprint=fp))


class SupervisedFingerprinter:
    """
    Owns the current FingerprintWorker and replaces it after a crash.
    The query that crashed a worker is dropped, never retried.
    """

    def __init__(
        self,
        fingerprinter: Fingerprinter = default_fingerprint,
        *,
        reporter: Reporter | None = None,
    ):
        self._fingerprinter = fingerprinter
        self._rep: Reporter = reporter if reporter is not None else NullReporter()
        self._worker: FingerprintWorker | None = None
        self.crashes = 0

    def __enter__(self) -> "SupervisedFingerprinter":
        self._worker = self._spawn()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _spawn(self) -> FingerprintWorker:
        return FingerprintWorker(self._fingerprinter).start()

    def fingerprint(self, query: str) -> Fingerprint | None:
        if self._worker is None:
            self._worker = self._spawn()

        match self._worker.submit(query):
            case Fingerprinted(fingerprint=fp):
                return fp
            case Crashed(error=err):
                self.crashes += 1
                self._rep.warning(f"fingerprinter crashed (recovering): {err}: {query}")
                self._worker = self._spawn()
                return None

    def close(self) -> None:
        if self._worker is not None:
            self._worker.stop()
            self._worker = None
