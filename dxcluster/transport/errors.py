# dxcluster/transport/errors.py
from __future__ import annotations

class TransportError(Exception):
    """Base class for transport-layer failures."""

class TransportOpenError(TransportError):
    pass

class TransportTimeoutError(TransportOpenError):
    """Connect deadline elapsed."""

class TransportClosedError(TransportError):
    """Peer closed the stream (zero-length read)."""

class TransportIOError(TransportError):
    pass
