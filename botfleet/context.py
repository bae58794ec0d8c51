from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from .config import FleetConfig
from .metrics import FleetCounters


class DrainBarrier:
    """Counts in-flight tasks so shutdown can block until they have all finished."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._count = 0

    @property
    def count(self) -> int:
        with self._cond:
            return self._count

    def add(self) -> None:
        with self._cond:
            self._count += 1

    def done(self) -> None:
        with self._cond:
            if self._count <= 0:
                raise RuntimeError("DrainBarrier.done() called more times than add()")
            self._count -= 1
            if self._count == 0:
                self._cond.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._count == 0, timeout=timeout)


@dataclass
class RunContext:
    """State shared by every task of one fleet run.

    ``identities`` is the full peer list messages may be addressed to; the
    fleet itself is the first ``config.num_bots`` of them.
    """

    identities: tuple[str, ...]
    config: FleetConfig
    counters: FleetCounters = field(default_factory=FleetCounters)
    cancel: threading.Event = field(default_factory=threading.Event)
    senders: DrainBarrier = field(default_factory=DrainBarrier)
    receivers: DrainBarrier = field(default_factory=DrainBarrier)
    started_at: float = field(default_factory=time.monotonic)

    def elapsed(self) -> float:
        return max(time.monotonic() - self.started_at, 0.0)


__all__ = ["DrainBarrier", "RunContext"]
