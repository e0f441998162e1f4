# dxcluster/protocol/pump.py
from __future__ import annotations

import logging
from typing import Callable, Optional

from dxcluster.core.errors import ReceiverLostError
from dxcluster.interfaces.spot_sink import DeliveryCancelled, SinkClosedError, SpotSink, StopSignal
from dxcluster.model.spot import Spot, parse_spot
from .line_channel import LineChannel

# Returns a Spot, or None / raises for lines that are not spots. Any exception
# from the parser drops the line.
SpotParser = Callable[[str], Optional[Spot]]


def clean_line(line: str) -> str:
    """Drop trailing whitespace (incl. CR/LF) and trailing bell characters."""
    return line.rstrip().rstrip("\x07")


class StreamPump:
    """
    Reads spot lines after login and forwards parsed spots to the sink.

    Parse failures are dropped; a sink refusing a spot is fatal. A stop that
    fires while the sink is blocked ends the pump cleanly.
    """

    def __init__(
        self,
        channel: LineChannel,
        sink: SpotSink,
        *,
        stop: StopSignal,
        parser: SpotParser = parse_spot,
        on_line: Optional[Callable[[bool], None]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._channel = channel
        self._sink = sink
        self._stop = stop
        self._parser = parser
        self._on_line = on_line
        self._log = logger or logging.getLogger(__name__)

    def run(self) -> None:
        """Returns when stopped; raises on EOF, I/O failure or sink loss."""
        while not self._stop.is_set():
            line = self._channel.read_line()

            if self._stop.is_set():
                return

            if line is None:
                continue

            spot = self._parse(clean_line(line))
            if spot is None:
                self._notify(False)
                continue

            try:
                self._sink.deliver(spot, self._stop)
            except DeliveryCancelled:
                self._log.info("SPOT_DELIVERY_CANCELLED dx_call=%s", spot.dx_call)
                return
            except SinkClosedError as e:
                raise ReceiverLostError(
                    "Spot receiver is gone.",
                    hint=str(e) or None,
                    details={"dx_call": spot.dx_call},
                ) from None
            self._notify(True)

    def _notify(self, delivered: bool) -> None:
        if self._on_line is not None:
            self._on_line(delivered)

    def _parse(self, text: str) -> Optional[Spot]:
        if not text:
            return None
        try:
            return self._parser(text)
        except Exception as e:
            self._log.debug("SPOT_DROPPED reason=%s: %s line=%r", type(e).__name__, e, text)
            return None
