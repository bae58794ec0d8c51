from __future__ import annotations

import threading
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class CounterSnapshot:
    sent: int
    received: int


class FleetCounters:
    """Sent/received totals shared by every task of one run."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sent = 0
        self._received = 0

    def record_sent(self) -> None:
        with self._lock:
            self._sent += 1

    def record_received(self) -> None:
        with self._lock:
            self._received += 1

    def snapshot(self) -> CounterSnapshot:
        with self._lock:
            return CounterSnapshot(sent=self._sent, received=self._received)


@dataclass(frozen=True)
class RunSummary:
    sent: int
    received: int
    duration_s: float

    @property
    def percentage_received(self) -> float:
        if self.sent == 0:
            return 0.0
        return self.received / self.sent * 100.0

    @property
    def sent_per_second(self) -> float:
        if self.duration_s <= 0:
            return 0.0
        return self.sent / self.duration_s

    @property
    def received_per_second(self) -> float:
        if self.duration_s <= 0:
            return 0.0
        return self.received / self.duration_s

    def as_row(self) -> dict[str, float]:
        row = asdict(self)
        row["percentage_received"] = self.percentage_received
        row["sent_per_second"] = self.sent_per_second
        row["received_per_second"] = self.received_per_second
        return row


def summarize(snapshot: CounterSnapshot, duration_s: float) -> RunSummary:
    return RunSummary(
        sent=snapshot.sent,
        received=snapshot.received,
        duration_s=max(duration_s, 0.0),
    )


def format_report(summary: RunSummary) -> str:
    lines = [
        f"Total of sent messages: {summary.sent}",
        f"Total of received messages: {summary.received}",
        f"Percentage of received messages: {summary.percentage_received:.2f}%",
        f"Sent messages rate: {summary.sent_per_second:.2f}/sec",
        f"Received messages rate: {summary.received_per_second:.2f}/sec",
    ]
    return "\n".join(lines)


__all__ = [
    "CounterSnapshot",
    "FleetCounters",
    "RunSummary",
    "format_report",
    "summarize",
]
