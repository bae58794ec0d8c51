"""
Run artefacts for the bot fleet.

Samples the fleet counters over the run and writes the summary and timeline
as CSV files alongside a throughput chart.
"""

from .collector import TimelineCollector
from .writer import write_run_artifacts

__all__ = ["TimelineCollector", "write_run_artifacts"]
