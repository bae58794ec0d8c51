from __future__ import annotations

import contextlib
import logging
import threading
from dataclasses import dataclass
from typing import Callable, ContextManager

from websockets.exceptions import WebSocketException
from websockets.sync.client import ClientConnection, connect

from .config import FleetConfig
from .context import RunContext
from .errors import DialError
from .receiver import start_receiver

LOGGER = logging.getLogger("botfleet.connection")

Dialer = Callable[[str, FleetConfig], ContextManager[ClientConnection]]


def dial(url: str, config: FleetConfig) -> ContextManager[ClientConnection]:
    return connect(
        url,
        open_timeout=config.open_timeout_s,
        close_timeout=config.close_timeout_s,
    )


@dataclass
class BotLink:
    identity: str
    connection: ClientConnection
    receiver: threading.Thread


class ConnectionManager:
    """Opens one connection per bot and starts the receiver bound to it."""

    def __init__(self, context: RunContext, dialer: Dialer = dial) -> None:
        self._context = context
        self._dialer = dialer

    def connect(self, identity: str, stack: contextlib.ExitStack) -> BotLink:
        """Dial ``identity`` and register the connection on ``stack``, which closes it on exit."""
        url = self._context.config.url_for(identity)
        try:
            connection = stack.enter_context(self._dialer(url, self._context.config))
        except (WebSocketException, OSError) as exc:
            raise DialError(identity, str(exc) or type(exc).__name__) from exc
        LOGGER.debug("[%s] connected to %s", identity, url)
        receiver = start_receiver(identity, connection, self._context)
        return BotLink(identity=identity, connection=connection, receiver=receiver)


__all__ = ["BotLink", "ConnectionManager", "Dialer", "dial"]
