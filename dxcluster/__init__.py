"""
dxcluster: client for DX cluster telnet servers.

    from dxcluster import Listener

    listener = Listener("dxc.example.net", 7300, "N0CALL")
    listener.start(lambda spot: print(spot.to_json()))
    ...
    listener.request_stop()
    listener.join()
"""

from dxcluster.core.errors import (
    AlreadyJoinedError,
    AuthenticationError,
    ClusterConfigError,
    ClusterError,
    ConnectError,
    ConnectTimeoutError,
    ConnectionLostError,
    InternalError,
    ReceiverLostError,
    ShutdownAlreadyRequestedError,
    UnknownIOError,
)
from dxcluster.interfaces.spot_sink import DeliveryCancelled, SinkClosedError, SpotSink
from dxcluster.model.server import ConnectionHandle
from dxcluster.model.spot import Spot, SpotParseError, parse_spot
from dxcluster.runtime.listener import Listener
from dxcluster.runtime.sinks import CallbackSink, FanoutSink, QueueSink, SpotReceiver, open_spot_queue
from dxcluster.runtime.state import ListenerStatus, RunState, SessionPhase

__version__ = "0.1.0"

__all__ = [
    "Listener",
    "ConnectionHandle",
    "ListenerStatus", "RunState", "SessionPhase",
    "Spot", "SpotParseError", "parse_spot",
    "SpotSink", "SinkClosedError", "DeliveryCancelled",
    "CallbackSink", "FanoutSink", "QueueSink", "SpotReceiver", "open_spot_queue",
    "ClusterError", "ClusterConfigError",
    "ConnectError", "ConnectTimeoutError", "ConnectionLostError",
    "AuthenticationError", "UnknownIOError", "ReceiverLostError", "InternalError",
    "AlreadyJoinedError", "ShutdownAlreadyRequestedError",
]
