from __future__ import annotations

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

LOGGER = logging.getLogger("botfleet.reporting.charts")

sns.set_style("whitegrid")
plt.rcParams["figure.dpi"] = 100
plt.rcParams["savefig.dpi"] = 150
plt.rcParams["font.size"] = 10
plt.rcParams["axes.labelsize"] = 11
plt.rcParams["axes.titlesize"] = 13
plt.rcParams["legend.fontsize"] = 9

SERIES_COLORS = {
    "sent": "#2E86AB",
    "received": "#F18F01",
}


def render_throughput_chart(timeline: pd.DataFrame, chart_path: Path) -> Path:
    """Plot sent and received message rates over the run."""
    if timeline.empty:
        LOGGER.warning("No timeline samples available for throughput chart")
        return chart_path

    long_df = timeline.melt(
        id_vars="elapsed_s",
        value_vars=["sent_per_second", "received_per_second"],
        var_name="series",
        value_name="rate",
    )
    long_df["series"] = long_df["series"].str.replace("_per_second", "", regex=False)

    fig, ax = plt.subplots(figsize=(10, 6))
    sns.lineplot(
        data=long_df,
        x="elapsed_s",
        y="rate",
        hue="series",
        palette=SERIES_COLORS,
        linewidth=2.0,
        ax=ax,
    )
    ax.set_xlabel("Elapsed (s)", fontweight="semibold")
    ax.set_ylabel("Messages/sec", fontweight="semibold")
    ax.set_title("Fleet Throughput", fontweight="bold", pad=15)
    ax.grid(True, alpha=0.3, linestyle="--")
    ax.legend(title=None)

    plt.tight_layout()
    fig.savefig(chart_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    LOGGER.info("Rendering chart %s", chart_path)
    return chart_path


__all__ = ["render_throughput_chart"]
