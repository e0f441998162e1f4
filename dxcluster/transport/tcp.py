# dxcluster/transport/tcp.py
from __future__ import annotations

import socket
from typing import Optional

from .base import Transport
from .errors import (
    TransportClosedError,
    TransportIOError,
    TransportOpenError,
    TransportTimeoutError,
)


class TcpTransport(Transport):
    """
    TCP transport implemented over a plain socket.

    After open() the socket carries `read_timeout` so read(n) returns b"" once
    per tick while the server is silent.
    """

    def __init__(self, host: str, port: int, *, read_timeout: float = 0.25):
        self.host = host
        self.port = int(port)
        self.read_timeout = float(read_timeout)
        self.sock: Optional[socket.socket] = None

    def open(self, timeout: float | None = None) -> None:
        try:
            sock = socket.create_connection((self.host, self.port), timeout=timeout)
        except socket.timeout:
            raise TransportTimeoutError(
                f"connect to {self.host}:{self.port} timed out after {timeout}s"
            ) from None
        except OSError as e:
            raise TransportOpenError(f"connect to {self.host}:{self.port} failed: {e}") from None

        try:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            sock.settimeout(self.read_timeout)
        except OSError as e:
            sock.close()
            raise TransportOpenError(f"socket setup failed: {e}") from None

        self.sock = sock

    def close(self) -> None:
        if self.sock is None:
            return
        sock, self.sock = self.sock, None
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # already disconnected
            pass
        finally:
            sock.close()

    def is_open(self) -> bool:
        return self.sock is not None

    def read(self, n: int) -> bytes:
        if self.sock is None:
            raise TransportIOError("read while transport not open")

        try:
            data = self.sock.recv(n)
        except socket.timeout:
            return b""
        except OSError as e:
            raise TransportIOError(f"TCP read failed: {e}") from None

        if not data:
            raise TransportClosedError(f"{self.host}:{self.port} closed the connection")
        return data

    def write(self, data: bytes) -> int:
        if self.sock is None:
            raise TransportIOError("write while transport not open")

        try:
            return self.sock.send(data)
        except OSError as e:
            raise TransportIOError(f"TCP write failed: {e}") from None
