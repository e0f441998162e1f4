# dxcluster/transport/base.py
from __future__ import annotations

from abc import ABC, abstractmethod

class Transport(ABC):
    """
    Abstract byte-stream transport to a cluster server.

    Contract:
      - open(timeout) establishes the connection within `timeout` seconds.
      - read(n) returns 1..n bytes, or b"" when the read tick elapsed with no
        data. End of stream is NOT b"": it raises TransportClosedError.
      - write(data) returns the number of bytes accepted (possibly fewer than
        len(data), possibly 0).
      - close() is idempotent.
    """

    @abstractmethod
    def open(self, timeout: float | None = None) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def read(self, n: int) -> bytes: ...

    @abstractmethod
    def write(self, data: bytes) -> int: ...

