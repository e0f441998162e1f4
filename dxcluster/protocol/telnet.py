# dxcluster/protocol/telnet.py
from __future__ import annotations

IAC = 0xFF
SB = 0xFA
SE = 0xF0
WILL, WONT, DO, DONT = 0xFB, 0xFC, 0xFD, 0xFE


class TelnetFilter:
    """
    Removes telnet command sequences (IAC ...) from a byte stream.

    Cluster servers are reached as raw TCP but some of them open with option
    negotiation. Sequences may be split across reads, so an incomplete tail
    is carried to the next feed().
    """

    def __init__(self) -> None:
        self._carry = b""
        self._in_sb = False

    def feed(self, data: bytes) -> bytes:
        buf = self._carry + data
        self._carry = b""
        out = bytearray()
        i = 0
        n = len(buf)

        while i < n:
            b = buf[i]

            if self._in_sb:
                # subnegotiation payload runs until IAC SE
                if b == IAC:
                    if i + 1 >= n:
                        self._carry = buf[i:]
                        break
                    if buf[i + 1] == SE:
                        self._in_sb = False
                    i += 2
                else:
                    i += 1
                continue

            if b != IAC:
                out.append(b)
                i += 1
                continue

            if i + 1 >= n:
                self._carry = buf[i:]
                break

            cmd = buf[i + 1]
            if cmd == IAC:
                out.append(IAC)  # escaped 0xFF data byte
                i += 2
            elif cmd in (WILL, WONT, DO, DONT):
                if i + 2 >= n:
                    self._carry = buf[i:]
                    break
                i += 3
            elif cmd == SB:
                self._in_sb = True
                i += 2
            else:
                i += 2

        return bytes(out)
