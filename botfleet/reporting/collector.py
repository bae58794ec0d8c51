from __future__ import annotations

import threading
from typing import Any, Optional

import pandas as pd

from ..context import RunContext

TIMELINE_COLUMNS = [
    "elapsed_s",
    "sent",
    "received",
    "sent_per_second",
    "received_per_second",
]


class TimelineCollector:
    """Samples the fleet counters on a fixed interval for the timeline artefacts."""

    def __init__(self, context: RunContext, interval_s: Optional[float] = None) -> None:
        self._context = context
        self._interval_s = interval_s or context.config.sample_interval_s
        self._rows_lock = threading.Lock()
        self._rows: list[dict[str, Any]] = []
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        def runner() -> None:
            self._sample()
            while not self._stop_event.wait(timeout=self._interval_s):
                self._sample()
            self._sample()

        thread = threading.Thread(target=runner, name="timeline-collector", daemon=True)
        thread.start()
        self._thread = thread

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)

    def _sample(self) -> None:
        snapshot = self._context.counters.snapshot()
        row = {
            "elapsed_s": self._context.elapsed(),
            "sent": snapshot.sent,
            "received": snapshot.received,
        }
        with self._rows_lock:
            self._rows.append(row)

    def build_dataframe(self) -> pd.DataFrame:
        with self._rows_lock:
            rows = list(self._rows)

        if not rows:
            return pd.DataFrame(columns=TIMELINE_COLUMNS)

        df = pd.DataFrame(rows)
        cumulative = df[["elapsed_s", "sent", "received"]]
        deltas = cumulative.diff()
        deltas.iloc[0] = cumulative.iloc[0]
        span = deltas["elapsed_s"].where(deltas["elapsed_s"] > 0)
        df["sent_per_second"] = (deltas["sent"] / span).fillna(0.0)
        df["received_per_second"] = (deltas["received"] / span).fillna(0.0)
        return df[TIMELINE_COLUMNS]


__all__ = ["TIMELINE_COLUMNS", "TimelineCollector"]
