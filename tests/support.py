from __future__ import annotations

import collections
import threading
import time
from http import HTTPStatus
from typing import Callable, Iterable, Optional, Union
from urllib.parse import unquote

from websockets.exceptions import ConnectionClosed, ConnectionClosedOK
from websockets.sync.server import ServerConnection, serve

from botfleet.config import FleetConfig
from botfleet.context import RunContext


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def make_context(
    identities: Iterable[str],
    server_addr: str = "127.0.0.1:1",
    num_bots: Optional[int] = None,
    send_interval_s: float = 0.05,
    **overrides,
) -> RunContext:
    identities = tuple(identities)
    config = FleetConfig(
        server_addr=server_addr,
        num_bots=num_bots or max(len(identities), 1),
        send_interval_s=send_interval_s,
        open_timeout_s=2.0,
        close_timeout_s=2.0,
        drain_timeout_s=5.0,
        **overrides,
    )
    return RunContext(identities=identities, config=config)


class FakeConnection:
    """Stands in for a client connection: records sends, replays scripted inbound frames."""

    def __init__(
        self,
        inbound: Iterable[Union[str, bytes, Exception]] = (),
        fail_after: Optional[int] = None,
    ) -> None:
        self.sent: list[str] = []
        self.close_codes: list[int] = []
        self._inbound = collections.deque(inbound)
        self._fail_after = fail_after
        self._lock = threading.Lock()

    def send(self, message: str) -> None:
        with self._lock:
            if self._fail_after is not None and len(self.sent) >= self._fail_after:
                raise ConnectionClosedOK(None, None)
            self.sent.append(message)

    @property
    def pending(self) -> int:
        return len(self._inbound)

    def recv(self) -> Union[str, bytes]:
        if not self._inbound:
            raise ConnectionClosedOK(None, None)
        item = self._inbound.popleft()
        if isinstance(item, Exception):
            raise item
        return item

    def close(self, code: int = 1000, reason: str = "") -> None:
        with self._lock:
            self.close_codes.append(code)


def identity_from_path(path: str) -> str:
    return unquote(path.split("?", 1)[0].lstrip("/"))


class RelayServer:
    """In-process message server used as the fleet's counterpart in tests.

    In ``relay`` mode every frame is forwarded unchanged to the client whose
    identity is the frame's leading field. In ``echo`` mode frames go back to
    their sender. Identities in ``reject`` fail the handshake with 403, and
    ``misroute`` maps an identity to a frame pushed to it right after it
    connects.
    """

    def __init__(
        self,
        mode: str = "relay",
        reject: Iterable[str] = (),
        misroute: Optional[dict[str, str]] = None,
    ) -> None:
        self._mode = mode
        self._reject = set(reject)
        self._misroute = dict(misroute or {})
        self._lock = threading.Lock()
        self._clients: dict[str, ServerConnection] = {}
        self.connected: list[str] = []
        self.close_codes: dict[str, Optional[int]] = {}
        self._server = None
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> str:
        host, port = self._server.socket.getsockname()[:2]
        return f"{host}:{port}"

    def start(self) -> "RelayServer":
        self._server = serve(
            self._handle,
            "127.0.0.1",
            0,
            process_request=self._process_request,
        )
        self._thread = threading.Thread(
            target=self._server.serve_forever, name="relay-server", daemon=True
        )
        self._thread.start()
        return self

    def stop(self) -> None:
        if self._server is not None:
            self._server.shutdown()
        if self._thread is not None:
            self._thread.join(timeout=5.0)

    def _process_request(self, connection, request):
        if identity_from_path(request.path) in self._reject:
            return connection.respond(HTTPStatus.FORBIDDEN, "rejected\n")
        return None

    def _handle(self, websocket: ServerConnection) -> None:
        identity = identity_from_path(websocket.request.path)
        with self._lock:
            self._clients[identity] = websocket
            self.connected.append(identity)
        try:
            if identity in self._misroute:
                websocket.send(self._misroute[identity])
            for message in websocket:
                if self._mode == "echo":
                    websocket.send(message)
                    continue
                target = message.split(",", 1)[0]
                with self._lock:
                    peer = self._clients.get(target)
                if peer is None:
                    continue
                try:
                    peer.send(message)
                except ConnectionClosed:
                    pass
        except ConnectionClosed:
            pass
        finally:
            close_rcvd = websocket.protocol.close_rcvd
            with self._lock:
                self._clients.pop(identity, None)
                self.close_codes[identity] = close_rcvd.code if close_rcvd else None
