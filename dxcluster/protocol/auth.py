# dxcluster/protocol/auth.py
from __future__ import annotations

import logging
from typing import Iterable, Optional

from dxcluster.core.defaults import AUTH_PROMPTS, DEFAULTS
from dxcluster.core.errors import AuthenticationError
from .line_channel import LineChannel, StopSignal


def is_auth_prompt(text: str, prompts: Iterable[str] = AUTH_PROMPTS) -> bool:
    """Suffix match of the buffered text, ignoring trailing whitespace."""
    tail = text.rstrip()
    return any(tail.endswith(p) for p in prompts)


class AuthNegotiator:
    """
    Drives the login handshake: wait for a prompt, send the callsign.

    Each silent read tick without a prompt costs one retry; a complete line
    that is not a prompt (banner text) is discarded and refills the budget.
    """

    def __init__(
        self,
        channel: LineChannel,
        callsign: str,
        *,
        stop: StopSignal,
        retries: int = DEFAULTS.auth_retries,
        prompts: Iterable[str] = AUTH_PROMPTS,
        logger: Optional[logging.Logger] = None,
    ):
        if retries < 1:
            raise ValueError("retries must be >= 1")
        self._channel = channel
        self._callsign = callsign
        self._stop = stop
        self._retries = int(retries)
        self._prompts = tuple(prompts)
        self._log = logger or logging.getLogger(__name__)

    def run(self) -> bool:
        """
        Returns True once the callsign was sent, False if stopped first.

        Raises AuthenticationError when the retry budget runs out; transport
        errors propagate.
        """
        remaining = self._retries

        while not self._stop.is_set():
            line = self._channel.read_line()

            if self._stop.is_set():
                return False

            if line is not None:
                if is_auth_prompt(line, self._prompts):
                    self._send_callsign()
                    return True
                self._log.debug("AUTH_BANNER line=%r", line.rstrip())
                remaining = self._retries
                continue

            if is_auth_prompt(self._channel.pending, self._prompts):
                self._channel.clear_pending()
                self._send_callsign()
                return True

            remaining -= 1
            if remaining <= 0:
                raise AuthenticationError(
                    "No login prompt received from server.",
                    hint="Check that the host/port is a DX cluster telnet service.",
                    details={"retries": self._retries, "pending": self._channel.pending[-80:]},
                )

        return False

    def _send_callsign(self) -> None:
        self._log.info("AUTH_PROMPT_SEEN sending callsign=%s", self._callsign)
        self._channel.write_line(self._callsign)
