from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from ..metrics import RunSummary
from .charts import render_throughput_chart

LOGGER = logging.getLogger("botfleet.reporting")

SUMMARY_FILENAME = "summary.csv"
TIMELINE_FILENAME = "timeline.csv"
CHART_FILENAME = "throughput.png"


def write_run_artifacts(
    summary: RunSummary,
    timeline: pd.DataFrame,
    output_dir: Path,
) -> dict[str, Path]:
    output_dir.mkdir(parents=True, exist_ok=True)

    summary_path = output_dir / SUMMARY_FILENAME
    pd.DataFrame([summary.as_row()]).to_csv(summary_path, index=False)

    timeline_path = output_dir / TIMELINE_FILENAME
    timeline.to_csv(timeline_path, index=False)
    LOGGER.info(
        "Saved run results to %s (%d timeline samples)",
        output_dir,
        len(timeline),
    )

    chart_path = render_throughput_chart(timeline, output_dir / CHART_FILENAME)
    return {
        "summary": summary_path,
        "timeline": timeline_path,
        "chart": chart_path,
    }


__all__ = [
    "CHART_FILENAME",
    "SUMMARY_FILENAME",
    "TIMELINE_FILENAME",
    "write_run_artifacts",
]
