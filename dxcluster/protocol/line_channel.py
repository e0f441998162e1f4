# dxcluster/protocol/line_channel.py
from __future__ import annotations

import logging
from typing import Optional

from dxcluster.core.defaults import DEFAULTS
from dxcluster.core.errors import ConnectionLostError
from dxcluster.interfaces.spot_sink import StopSignal
from dxcluster.transport.base import Transport
from .telnet import TelnetFilter


class LineChannel:
    """
    Buffered, timeout-driven line reader/writer over a transport.

    read_line() returns one complete line (terminator included) or None when
    a read tick elapsed without completing one. Bytes of an incomplete line
    stay buffered and are visible through `pending`; a partial line that
    outgrows `max_line_bytes` is discarded.

    Transport errors propagate unchanged; callers translate them.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        encoding: str = DEFAULTS.encoding,
        chunk_size: int = DEFAULTS.read_chunk_size,
        max_line_bytes: int = DEFAULTS.max_line_bytes,
        stop: Optional[StopSignal] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._transport = transport
        self._encoding = encoding
        self._chunk_size = int(chunk_size)
        self._max_line_bytes = int(max_line_bytes)
        self._stop = stop
        self._log = logger or logging.getLogger(__name__)

        self._telnet = TelnetFilter()
        self._buf = bytearray()

    @property
    def pending(self) -> str:
        """Decoded text of the buffered, not yet terminated line."""
        return self._buf.decode(self._encoding, errors="replace")

    def clear_pending(self) -> None:
        self._buf.clear()

    def read_line(self) -> Optional[str]:
        line = self._pop_line()
        if line is not None:
            return line

        # Keep reading while data trickles in; a silent tick ends the attempt.
        while True:
            data = self._transport.read(self._chunk_size)
            if not data:
                return None

            self._buf += self._telnet.feed(data)
            line = self._pop_line()
            if line is not None:
                return line

            if len(self._buf) > self._max_line_bytes:
                self._log.warning("LINE_OVERFLOW dropped=%d limit=%d", len(self._buf), self._max_line_bytes)
                self._buf.clear()

            if self._stop is not None and self._stop.is_set():
                return None

    def write_line(self, text: str) -> None:
        data = (text + "\r\n").encode(self._encoding)
        sent = 0
        while sent < len(data):
            n = self._transport.write(data[sent:])
            if n == 0:
                raise ConnectionLostError(
                    "Server stopped accepting data.",
                    details={"sent": sent, "total": len(data)},
                )
            sent += n

    def _pop_line(self) -> Optional[str]:
        idx = self._buf.find(b"\n")
        if idx < 0:
            return None
        raw = bytes(self._buf[: idx + 1])
        del self._buf[: idx + 1]
        return raw.decode(self._encoding, errors="replace")
