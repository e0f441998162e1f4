from __future__ import annotations

import pytest

from dxcluster.core.errors import ReceiverLostError
from dxcluster.interfaces.spot_sink import DeliveryCancelled, SinkClosedError
from dxcluster.model.spot import Spot
from dxcluster.protocol.line_channel import LineChannel
from dxcluster.protocol.pump import StreamPump, clean_line
from dxcluster.transport.errors import TransportClosedError, TransportIOError

SPOT_1 = b"DX de K1ABC:     14025.0  W1XYZ        CW 599                 1234Z\r\n"
SPOT_2 = b"DX de OH6BG-#:    7026.0  W4GNS        CQ                     1322Z JN58\x07\x07\r\n"


class FakeTransport:
    def __init__(self, chunks=None):
        self._chunks = list(chunks or [])
        self.reads = 0
        self.on_read = None

    def read(self, n: int) -> bytes:
        self.reads += 1
        if self.on_read is not None:
            self.on_read(self.reads)
        if not self._chunks:
            return b""
        item = self._chunks.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def write(self, data: bytes) -> int:
        return len(data)


class FakeStop:
    def __init__(self):
        self.flag = False

    def is_set(self) -> bool:
        return self.flag


class FakeSink:
    def __init__(self, *, closed=False):
        self.spots = []
        self.stops = []
        self.closed = closed

    def deliver(self, spot: Spot, stop=None) -> None:
        self.stops.append(stop)
        if self.closed:
            raise SinkClosedError("gone")
        self.spots.append(spot)

    def close(self) -> None:
        self.closed = True


def make(chunks, sink=None, **kwargs):
    t = FakeTransport(chunks)
    stop = FakeStop()
    sink = sink if sink is not None else FakeSink()
    events = []
    pump = StreamPump(LineChannel(t, stop=stop), sink, stop=stop, on_line=events.append, **kwargs)
    return pump, t, stop, sink, events


def test_clean_line_strips_whitespace_and_bells():
    assert clean_line("DX de X: 1.0 Y  1234Z\x07\x07\r\n") == "DX de X: 1.0 Y  1234Z"
    assert clean_line("   \r\n") == ""
    assert clean_line("text") == "text"


def test_spots_are_delivered_in_order_until_eof():
    pump, _, _, sink, events = make([SPOT_1 + SPOT_2, TransportClosedError("eof")])

    with pytest.raises(TransportClosedError):
        pump.run()

    assert [s.dx_call for s in sink.spots] == ["W1XYZ", "W4GNS"]
    assert sink.spots[1].time_utc == "1322"
    assert sink.spots[1].locator == "JN58"
    assert events == [True, True]


def test_unparseable_lines_are_dropped():
    chunks = [b"Hello N0CALL, this is GB7DJK\r\n", b"\r\n", SPOT_1, TransportClosedError("eof")]
    pump, _, _, sink, events = make(chunks)

    with pytest.raises(TransportClosedError):
        pump.run()

    assert len(sink.spots) == 1
    assert events == [False, False, True]


def test_parser_receives_cleaned_text():
    seen = []

    def parser(text):
        seen.append(text)
        raise ValueError("skip")

    pump, *_ = make([b"abc\x07\r\n", TransportClosedError("eof")], parser=parser)

    with pytest.raises(TransportClosedError):
        pump.run()
    assert seen == ["abc"]


def test_closed_sink_is_receiver_lost_and_stops_reading():
    pump, t, _, _, _ = make([SPOT_1, SPOT_2], sink=FakeSink(closed=True))

    with pytest.raises(ReceiverLostError):
        pump.run()
    assert t.reads == 1


def test_silent_ticks_do_not_end_the_pump():
    pump, t, stop, sink, _ = make([b"", b"", SPOT_1])

    def _stop_after(n):
        if n > 5:
            stop.flag = True

    t.on_read = _stop_after

    pump.run()

    assert len(sink.spots) == 1
    assert t.reads == 6


def test_line_read_after_stop_is_not_delivered():
    pump, t, stop, sink, _ = make([SPOT_1])

    def _stop_now(n):
        stop.flag = True

    t.on_read = _stop_now

    pump.run()

    assert sink.spots == []


def test_io_error_propagates():
    pump, *_ = make([TransportIOError("reset")])

    with pytest.raises(TransportIOError):
        pump.run()


def test_parser_exceptions_of_any_type_drop_the_line():
    def parser(text):
        if text.startswith("bad"):
            raise KeyError("mode")
        return Spot("K1ABC", 14025.0, "W1XYZ")

    pump, _, _, sink, events = make([b"bad line\r\n", b"good line\r\n", TransportClosedError("eof")], parser=parser)

    with pytest.raises(TransportClosedError):
        pump.run()

    assert len(sink.spots) == 1
    assert events == [False, True]


def test_sink_sees_the_stop_signal():
    pump, _, stop, sink, _ = make([SPOT_1, TransportClosedError("eof")])

    with pytest.raises(TransportClosedError):
        pump.run()
    assert sink.stops == [stop]


def test_cancelled_delivery_ends_pump_cleanly():
    class BlockedSink(FakeSink):
        def deliver(self, spot, stop=None):
            stop.flag = True
            raise DeliveryCancelled("stop while full")

    pump, t, _, _, events = make([SPOT_1, SPOT_2], sink=BlockedSink())

    pump.run()

    assert events == []
    assert t.reads == 1
