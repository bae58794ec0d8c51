from __future__ import annotations

import logging
import threading
from typing import Union

from websockets.exceptions import ConnectionClosed, ConnectionClosedOK
from websockets.sync.connection import Connection

from .context import RunContext
from .metrics import FleetCounters

LOGGER = logging.getLogger("botfleet.receiver")

STOP_CLOSED = "closed"
STOP_ERROR = "error"
STOP_MISMATCH = "mismatch"


def leading_field(message: Union[str, bytes]) -> str:
    if isinstance(message, bytes):
        message = message.decode("utf-8", errors="replace")
    return message.split(",", 1)[0]


def receive_messages(identity: str, connection: Connection, counters: FleetCounters) -> str:
    """Count frames addressed to ``identity`` until the connection ends or a frame is misrouted.

    Returns why counting stopped. After a misrouted frame the rest of the
    stream is read and dropped until the connection ends, so the sender can
    still complete its close handshake. The connection is never closed here;
    that is the sender's job.
    """
    while True:
        try:
            message = connection.recv()
        except ConnectionClosedOK as exc:
            LOGGER.info("[%s] read: %s", identity, exc)
            return STOP_CLOSED
        except (ConnectionClosed, OSError) as exc:
            LOGGER.warning("[%s] read: %s", identity, exc)
            return STOP_ERROR

        if leading_field(message) != identity:
            LOGGER.warning(
                "[%s] message arrived for wrong bot: %r",
                identity,
                message,
            )
            discard_messages(connection)
            return STOP_MISMATCH
        counters.record_received()


def discard_messages(connection: Connection) -> None:
    while True:
        try:
            connection.recv()
        except (ConnectionClosed, OSError):
            return


def start_receiver(identity: str, connection: Connection, context: RunContext) -> threading.Thread:
    context.receivers.add()

    def runner() -> None:
        try:
            receive_messages(identity, connection, context.counters)
        finally:
            context.receivers.done()

    thread = threading.Thread(target=runner, name=f"receiver-{identity}", daemon=True)
    try:
        thread.start()
    except RuntimeError:
        context.receivers.done()
        raise
    return thread


__all__ = [
    "STOP_CLOSED",
    "STOP_ERROR",
    "STOP_MISMATCH",
    "discard_messages",
    "leading_field",
    "receive_messages",
    "start_receiver",
]
