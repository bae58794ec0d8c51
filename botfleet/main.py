from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from .config import (
    DEFAULT_IDS_PATH,
    DEFAULT_NUM_BOTS,
    DEFAULT_SERVER_ADDR,
    FleetConfig,
    env_float,
    env_int,
)
from .context import RunContext
from .errors import FleetError
from .fleet import BotFleet
from .identities import load_identities
from .metrics import RunSummary, format_report
from .reporting import TimelineCollector, write_run_artifacts
from .shutdown import ShutdownCoordinator

LOGGER = logging.getLogger("botfleet")


def positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {number}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    env = os.environ
    parser = argparse.ArgumentParser(description="Simulate a fleet of WebSocket bots")
    parser.add_argument(
        "--server-addr",
        default=env.get("SERVER_ADDR") or DEFAULT_SERVER_ADDR,
        help="host:port of the message server",
    )
    parser.add_argument(
        "--num-bots",
        type=positive_int,
        default=env_int(env, "NUM_BOTS", DEFAULT_NUM_BOTS),
        help="Number of bots to connect (the first N identities)",
    )
    parser.add_argument(
        "--ids-path",
        default=env.get("IDS_PATH") or str(DEFAULT_IDS_PATH),
        help="Newline-delimited identity list",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=env_float(env, "FLEET_DURATION_SECONDS", None),
        help="Stop after this many seconds instead of waiting for Ctrl+C",
    )
    parser.add_argument(
        "--output-dir",
        default=env.get("FLEET_OUTPUT_DIR"),
        help="Directory to store run artefacts (CSV files and chart)",
    )
    parser.add_argument(
        "--log-level",
        default=env.get("FLEET_LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = FleetConfig(
            server_addr=args.server_addr,
            num_bots=args.num_bots,
            duration_s=args.duration,
        )
        identities = load_identities(Path(args.ids_path))
    except FleetError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    context = RunContext(identities=identities, config=config)
    collector = TimelineCollector(context)
    output_dir = Path(args.output_dir) if args.output_dir else None

    def report(summary: RunSummary) -> None:
        collector.stop()
        print(format_report(summary), flush=True)
        if output_dir is None:
            return
        try:
            write_run_artifacts(summary, collector.build_dataframe(), output_dir)
        except OSError as exc:
            LOGGER.error("Failed to save run artefacts to %s: %s", output_dir, exc)

    coordinator = ShutdownCoordinator(context, report)
    try:
        with coordinator.handling_signals():
            with BotFleet(context) as fleet:
                fleet.connect()
                try:
                    fleet.start()
                    collector.start()
                except KeyboardInterrupt:
                    coordinator.request_shutdown("Ctrl+C")
                coordinator.wait()
                coordinator.shutdown()
    except FleetError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("interrupted before the fleet started", file=sys.stderr)
        return 130
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
