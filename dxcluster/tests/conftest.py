from __future__ import annotations

import socket
import threading
import time
from typing import Callable, List

import pytest


class ScriptedServer:
    """
    Localhost TCP server that runs `script(conn, server)` for the first
    client it accepts. Everything the client sends is collected in `received`
    by recv_until().
    """

    def __init__(self, script: Callable[[socket.socket, "ScriptedServer"], None]):
        self._script = script
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(1)
        self._sock.settimeout(5.0)

        self.host = "127.0.0.1"
        self.port = self._sock.getsockname()[1]
        self.received = bytearray()
        self.release = threading.Event()
        self.error: BaseException | None = None

        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        try:
            conn, _ = self._sock.accept()
        except OSError:
            return
        try:
            with conn:
                conn.settimeout(5.0)
                self._script(conn, self)
        except OSError as e:
            self.error = e

    def recv_until(self, conn: socket.socket, marker: bytes, timeout: float = 5.0) -> bool:
        deadline = time.monotonic() + timeout
        while marker not in self.received:
            if time.monotonic() > deadline:
                return False
            try:
                data = conn.recv(1024)
            except socket.timeout:
                continue
            if not data:
                return False
            self.received += data
        return True

    def hold(self, timeout: float = 5.0) -> None:
        """Keep the connection open until the test releases it."""
        self.release.wait(timeout)

    def close(self) -> None:
        self.release.set()
        self._sock.close()
        self._thread.join(timeout=5.0)


@pytest.fixture
def cluster_server():
    servers: List[ScriptedServer] = []

    def _make(script) -> ScriptedServer:
        srv = ScriptedServer(script)
        servers.append(srv)
        return srv

    yield _make

    for srv in servers:
        srv.close()


@pytest.fixture
def free_port() -> int:
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port
