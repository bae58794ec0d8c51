from __future__ import annotations

import contextlib
import logging
import random
import threading
from typing import Optional

from .connection import BotLink, ConnectionManager, Dialer, dial
from .context import RunContext
from .identities import select_fleet
from .sender import close_connection, start_sender

LOGGER = logging.getLogger("botfleet.fleet")


class BotFleet:
    """Connects every bot of a run and then starts their senders.

    Every connection is opened before any sender starts, so a single failed
    dial aborts the run with nothing sent. Connections are held on an exit
    stack; senders close their own on the way out and :meth:`close` releases
    whatever is left once the fleet has drained.
    """

    def __init__(
        self,
        context: RunContext,
        dialer: Dialer = dial,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._context = context
        self._manager = ConnectionManager(context, dialer)
        self._rng = rng
        self._members = select_fleet(context.identities, context.config.num_bots)
        self._stack = contextlib.ExitStack()
        self._links: list[BotLink] = []
        self._senders: list[threading.Thread] = []

    def __enter__(self) -> BotFleet:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def context(self) -> RunContext:
        return self._context

    @property
    def links(self) -> list[BotLink]:
        return list(self._links)

    @property
    def senders(self) -> list[threading.Thread]:
        return list(self._senders)

    def connect(self) -> None:
        LOGGER.info("Connecting %d bots to %s", len(self._members), self._context.config.server_addr)
        try:
            for identity in self._members:
                self._links.append(self._manager.connect(identity, self._stack))
        except BaseException:
            self.abort()
            raise

    def start(self) -> None:
        if self._senders:
            raise RuntimeError("fleet already started")
        LOGGER.info("Starting %d bots...", len(self._links))
        try:
            for link in self._links:
                self._senders.append(
                    start_sender(link.identity, link.connection, self._context, self._rng)
                )
        except BaseException:
            for orphan in self._links[len(self._senders):]:
                close_connection(orphan.identity, orphan.connection)
            raise

    def abort(self) -> None:
        """Close connections that no sender owns yet."""
        if self._senders:
            raise RuntimeError("cannot abort a fleet whose senders are running")
        for link in self._links:
            close_connection(link.identity, link.connection)
        self._links.clear()
        self.close()

    def close(self) -> None:
        self._stack.close()


__all__ = ["BotFleet"]
