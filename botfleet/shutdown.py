from __future__ import annotations

import contextlib
import enum
import logging
import signal
import threading
import time
from typing import Callable, Iterator, Optional

from .context import RunContext
from .metrics import RunSummary, summarize

LOGGER = logging.getLogger("botfleet.shutdown")

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownState(enum.Enum):
    RUNNING = "running"
    CANCELLING = "cancelling"
    DRAINING = "draining"
    REPORTING = "reporting"
    TERMINATED = "terminated"


class ShutdownCoordinator:
    """Turns the first interrupt into one cancel, drain and report sequence.

    Later interrupts, and later calls to :meth:`request_shutdown` or
    :meth:`shutdown`, have no further effect.
    """

    def __init__(
        self,
        context: RunContext,
        report: Callable[[RunSummary], None],
        poll_interval_s: float = 0.5,
    ) -> None:
        self._context = context
        self._report = report
        self._poll_interval_s = poll_interval_s
        self._lock = threading.Lock()
        self._shutdown_lock = threading.Lock()
        self._state = ShutdownState.RUNNING
        self._duration_s: Optional[float] = None
        self._summary: Optional[RunSummary] = None

    @property
    def state(self) -> ShutdownState:
        return self._state

    def request_shutdown(self, reason: str = "interrupt") -> bool:
        with self._lock:
            if self._state is not ShutdownState.RUNNING:
                return False
            self._duration_s = self._context.elapsed()
            self._state = ShutdownState.CANCELLING
        LOGGER.info("%s detected. Quitting...", reason)
        self._context.cancel.set()
        return True

    def wait(self) -> None:
        """Block until shutdown is requested.

        Besides explicit requests and interrupts, the run ends once the
        configured duration has elapsed or when every sender has already
        stopped on its own.
        """
        duration_s = self._context.config.duration_s
        deadline = None if duration_s is None else self._context.started_at + duration_s
        try:
            while True:
                timeout = self._poll_interval_s
                if deadline is not None:
                    timeout = min(timeout, max(deadline - time.monotonic(), 0.0))
                if self._context.cancel.wait(timeout=timeout):
                    return
                if deadline is not None and time.monotonic() >= deadline:
                    self.request_shutdown("Run duration elapsed")
                    return
                if self._context.senders.count == 0:
                    LOGGER.warning("every sender has stopped")
                    self.request_shutdown("Idle fleet")
                    return
        except KeyboardInterrupt:
            self.request_shutdown("Ctrl+C")

    def shutdown(self) -> RunSummary:
        with self._shutdown_lock:
            if self._summary is not None:
                return self._summary

            self.request_shutdown("Shutdown")
            self._state = ShutdownState.DRAINING
            timeout = self._context.config.drain_timeout_s
            if not self._context.senders.wait(timeout=timeout):
                LOGGER.warning(
                    "%d sender(s) still running after %.1fs",
                    self._context.senders.count,
                    timeout,
                )
            if not self._context.receivers.wait(timeout=timeout):
                LOGGER.warning(
                    "%d receiver(s) still running after %.1fs",
                    self._context.receivers.count,
                    timeout,
                )

            self._state = ShutdownState.REPORTING
            summary = summarize(self._context.counters.snapshot(), self._duration_s or 0.0)
            try:
                self._report(summary)
            finally:
                self._summary = summary
                self._state = ShutdownState.TERMINATED
            return summary

    @contextlib.contextmanager
    def handling_signals(self) -> Iterator[None]:
        """Route SIGINT/SIGTERM into :meth:`wait` and ignore them once shutdown has begun."""
        if threading.current_thread() is not threading.main_thread():
            yield
            return

        previous = {signum: signal.getsignal(signum) for signum in HANDLED_SIGNALS}
        for signum in HANDLED_SIGNALS:
            signal.signal(signum, self._on_signal)
        try:
            yield
        finally:
            for signum, handler in previous.items():
                signal.signal(signum, handler)

    def _on_signal(self, signum, frame) -> None:
        # Runs on the main thread between bytecodes; must not take locks.
        if self._state is not ShutdownState.RUNNING:
            return
        raise KeyboardInterrupt


__all__ = ["HANDLED_SIGNALS", "ShutdownCoordinator", "ShutdownState"]
