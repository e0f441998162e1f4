from .spot_sink import DeliveryCancelled, SinkClosedError, SpotSink, StopSignal

__all__ = ["DeliveryCancelled", "SinkClosedError", "SpotSink", "StopSignal"]
