from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import quote

from .errors import FleetConfigError

DEFAULT_SERVER_ADDR = "localhost:8080"
DEFAULT_NUM_BOTS = 200
DEFAULT_IDS_PATH = Path("ids")

MESSAGES_PER_SECOND = 15
SEND_INTERVAL_S = 1.0 / MESSAGES_PER_SECOND

MESSAGE_TEMPLATE = "{},4.23124,3.1415,8.5828348,270.42198842,184.24928148"

NORMAL_CLOSURE = 1000


@dataclass(frozen=True)
class FleetConfig:
    """Settings for a single fleet run."""

    server_addr: str = DEFAULT_SERVER_ADDR
    num_bots: int = DEFAULT_NUM_BOTS
    send_interval_s: float = SEND_INTERVAL_S
    open_timeout_s: float = 10.0
    close_timeout_s: float = 5.0
    drain_timeout_s: float = 30.0
    sample_interval_s: float = 1.0
    duration_s: Optional[float] = None

    def __post_init__(self) -> None:
        if self.num_bots <= 0:
            raise FleetConfigError(f"fleet size must be > 0, got {self.num_bots}")
        if self.send_interval_s <= 0:
            raise FleetConfigError("send interval must be > 0")
        if self.duration_s is not None and self.duration_s <= 0:
            raise FleetConfigError("run duration must be > 0 when set")

    def url_for(self, identity: str) -> str:
        return f"ws://{self.server_addr}/{quote(identity, safe='')}"


def env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        print(f"invalid {name} value {raw!r}; defaulting to {default}", file=sys.stderr)
        return default


def env_float(env: Mapping[str, str], name: str, default: Optional[float]) -> Optional[float]:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        print(f"invalid {name} value {raw!r}; defaulting to {default}", file=sys.stderr)
        return default


__all__ = [
    "DEFAULT_IDS_PATH",
    "DEFAULT_NUM_BOTS",
    "DEFAULT_SERVER_ADDR",
    "FleetConfig",
    "MESSAGE_TEMPLATE",
    "MESSAGES_PER_SECOND",
    "NORMAL_CLOSURE",
    "SEND_INTERVAL_S",
    "env_float",
    "env_int",
]
