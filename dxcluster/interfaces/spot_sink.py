# dxcluster/interfaces/spot_sink.py
from __future__ import annotations

from typing import Optional, Protocol

from dxcluster.model.spot import Spot


class SinkClosedError(Exception):
    """Raised by SpotSink.deliver when the consumer side is gone."""


class DeliveryCancelled(Exception):
    """Raised by SpotSink.deliver when `stop` fired while it was waiting."""


class StopSignal(Protocol):
    def is_set(self) -> bool: ...


class SpotSink(Protocol):
    """
    Consumer side of a listener.

    deliver() runs on the worker thread. A sink that may block (a full
    bounded queue) must watch `stop` and raise DeliveryCancelled once it is
    set; sinks that never block may ignore it.
    """
    def deliver(self, spot: Spot, stop: Optional[StopSignal] = None) -> None: ...
    def close(self) -> None: ...
