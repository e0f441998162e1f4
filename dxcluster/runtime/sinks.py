# dxcluster/runtime/sinks.py
from __future__ import annotations

import logging
import queue
import threading
import weakref
from typing import Callable, Optional, Tuple, Union

from dxcluster.interfaces.spot_sink import DeliveryCancelled, SinkClosedError, SpotSink, StopSignal
from dxcluster.model.spot import Spot

SpotCallback = Callable[[Spot], None]


class CallbackSink(SpotSink):
    """
    Calls `fn(spot)` synchronously on the worker thread.

    A slow callback throttles the read loop. Any exception from the callback
    is treated as the receiver going away.
    """

    def __init__(self, fn: SpotCallback, *, logger: Optional[logging.Logger] = None):
        self._fn = fn
        self._log = logger or logging.getLogger(__name__)

    def deliver(self, spot: Spot, stop: Optional[StopSignal] = None) -> None:
        try:
            self._fn(spot)
        except SinkClosedError:
            raise
        except Exception as e:
            self._log.exception("SPOT_CALLBACK_ERROR dx_call=%s", spot.dx_call)
            raise SinkClosedError(f"callback raised {type(e).__name__}: {e}") from e

    def close(self) -> None:
        return None


class SpotReceiver:
    """
    Consumer end of a queue-backed sink.

    close() tells the producing listener that nobody reads anymore; its next
    delivery fails with ReceiverLost. Dropping the last reference to the
    receiver has the same effect.
    """

    def __init__(self, maxsize: int = 0):
        self._queue: "queue.Queue[Spot]" = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        self._closed.set()

    def get(self, timeout: Optional[float] = None) -> Spot:
        """Raises queue.Empty on timeout."""
        return self._queue.get(timeout=timeout)

    def get_nowait(self) -> Spot:
        return self._queue.get_nowait()

    def qsize(self) -> int:
        return self._queue.qsize()

    def drain(self) -> list[Spot]:
        out: list[Spot] = []
        while True:
            try:
                out.append(self._queue.get_nowait())
            except queue.Empty:
                return out


class QueueSink(SpotSink):
    """
    Producer end: hands each spot to a SpotReceiver's queue.

    Only a weak reference to the receiver is kept, so a receiver the consumer
    dropped is detected like a closed one.
    """

    def __init__(self, receiver: SpotReceiver, *, put_tick_s: float = 0.25):
        self._queue = receiver._queue
        self._closed = receiver._closed
        self._receiver = weakref.ref(receiver)
        weakref.finalize(receiver, self._closed.set)
        self._put_tick_s = float(put_tick_s)

    @property
    def receiver(self) -> Optional[SpotReceiver]:
        """The receiver, or None once it was garbage collected."""
        return self._receiver()

    @property
    def receiver_gone(self) -> bool:
        return self._closed.is_set() or self._receiver() is None

    def deliver(self, spot: Spot, stop: Optional[StopSignal] = None) -> None:
        # A full bounded queue must not outlive the receiver or a stop request.
        while True:
            if self.receiver_gone:
                raise SinkClosedError("spot receiver closed or dropped")
            if stop is not None and stop.is_set():
                raise DeliveryCancelled("stop requested while the spot queue was full")
            try:
                self._queue.put(spot, timeout=self._put_tick_s)
                return
            except queue.Full:
                continue

    def close(self) -> None:
        return None


def open_spot_queue(maxsize: int = 0, *, put_tick_s: float = 0.25) -> Tuple[QueueSink, SpotReceiver]:
    """Create a connected (sink, receiver) pair."""
    receiver = SpotReceiver(maxsize=maxsize)
    return QueueSink(receiver, put_tick_s=put_tick_s), receiver


def as_sink(target: Union[SpotSink, SpotCallback]) -> SpotSink:
    """Accept either a sink object or a plain callable."""
    if hasattr(target, "deliver"):
        return target  # type: ignore[return-value]
    if callable(target):
        return CallbackSink(target)
    raise TypeError(f"Expected SpotSink or callable, got {type(target).__name__}")


class FanoutSink(SpotSink):
    """
    Delivers each spot to several sinks in order.

    The first sink that refuses a spot fails the whole delivery.
    """

    def __init__(self, *sinks: SpotSink):
        if not sinks:
            raise ValueError("FanoutSink needs at least one sink")
        self._sinks = tuple(sinks)

    def deliver(self, spot: Spot, stop: Optional[StopSignal] = None) -> None:
        for s in self._sinks:
            s.deliver(spot, stop)

    def close(self) -> None:
        for s in self._sinks:
            s.close()
