from __future__ import annotations

import logging
import random
import threading
import time
from typing import Optional, Sequence

from websockets.exceptions import ConnectionClosed
from websockets.sync.connection import Connection

from .config import MESSAGE_TEMPLATE, NORMAL_CLOSURE
from .context import RunContext
from .identities import pick_random_peer
from .metrics import FleetCounters

LOGGER = logging.getLogger("botfleet.sender")


def format_message(peer: str) -> str:
    return MESSAGE_TEMPLATE.format(peer)


def send_messages(
    identity: str,
    identities: Sequence[str],
    connection: Connection,
    counters: FleetCounters,
    cancel: threading.Event,
    interval_s: float,
    rng: Optional[random.Random] = None,
) -> None:
    """Send one message per tick until ``cancel`` is set or a write fails.

    Ticks are scheduled against a monotonic deadline; the first one fires one
    interval after the call and missed ticks are dropped rather than bunched.
    A tick with no possible peer sends nothing.
    """
    next_tick = time.monotonic() + interval_s
    while not cancel.wait(timeout=max(next_tick - time.monotonic(), 0.0)):
        now = time.monotonic()
        next_tick += interval_s
        if next_tick <= now:
            next_tick = now + interval_s
        peer = pick_random_peer(identity, identities, rng)
        if peer is None:
            continue
        try:
            connection.send(format_message(peer))
        except (ConnectionClosed, OSError) as exc:
            LOGGER.warning("[%s] write: %s", identity, exc)
            return
        counters.record_sent()


def close_connection(identity: str, connection: Connection) -> None:
    try:
        connection.close(code=NORMAL_CLOSURE)
    except (ConnectionClosed, OSError) as exc:
        LOGGER.warning("[%s] write close: %s", identity, exc)


def run_sender(
    identity: str,
    connection: Connection,
    context: RunContext,
    rng: Optional[random.Random] = None,
) -> None:
    """Sender task body: send loop, then close the connection and release the drain barrier."""
    try:
        send_messages(
            identity,
            context.identities,
            connection,
            context.counters,
            context.cancel,
            context.config.send_interval_s,
            rng,
        )
    finally:
        try:
            close_connection(identity, connection)
        finally:
            context.senders.done()


def start_sender(
    identity: str,
    connection: Connection,
    context: RunContext,
    rng: Optional[random.Random] = None,
) -> threading.Thread:
    context.senders.add()
    thread = threading.Thread(
        target=run_sender,
        args=(identity, connection, context, rng),
        name=f"sender-{identity}",
        daemon=True,
    )
    try:
        thread.start()
    except RuntimeError:
        context.senders.done()
        raise
    return thread


__all__ = [
    "close_connection",
    "format_message",
    "run_sender",
    "send_messages",
    "start_sender",
]
