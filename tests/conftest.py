from __future__ import annotations

import pytest

from .support import RelayServer


@pytest.fixture
def relay_server():
    server = RelayServer().start()
    yield server
    server.stop()


@pytest.fixture
def server_factory():
    servers: list[RelayServer] = []

    def factory(**kwargs) -> RelayServer:
        server = RelayServer(**kwargs).start()
        servers.append(server)
        return server

    yield factory
    for server in servers:
        server.stop()
