# dxcluster/core/errors.py
from __future__ import annotations


class ClusterError(Exception):
    """
    Base class for all expected operational errors of a cluster connection.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, logs, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuration errors (no network access yet)
# ---------------------------------------------------------------------------

class ClusterConfigError(ClusterError):
    """
    Configuration is invalid or incomplete.

    Examples:
      - missing callsign
      - port outside 1..65535
      - unreadable / malformed YAML server catalog
    """
    code = "config_error"


# ---------------------------------------------------------------------------
# Connect-time errors (raised synchronously from Listener.start)
# ---------------------------------------------------------------------------

class ConnectError(ClusterError):
    """
    TCP connection to the cluster server could not be established.

    Examples:
      - host name does not resolve
      - connection refused
      - network unreachable
    """
    code = "connection_error"


class ConnectTimeoutError(ConnectError):
    """Connection attempt exceeded the connect deadline."""
    code = "connection_timeout"


# ---------------------------------------------------------------------------
# Runtime errors (reported through Listener.join)
# ---------------------------------------------------------------------------

class ConnectionLostError(ClusterError):
    """
    Server closed the connection mid-session.

    Examples:
      - zero-length read (EOF) while waiting for the prompt or for spots
      - callsign write accepted zero bytes
    """
    code = "connection_lost"


class AuthenticationError(ClusterError):
    """No known login prompt was seen within the retry budget."""
    code = "authentication_error"


class UnknownIOError(ClusterError):
    """Uncategorized socket failure during read or write."""
    code = "unknown_error"


class ReceiverLostError(ClusterError):
    """
    The spot sink refused a delivery.

    Examples:
      - queue receiver was closed by its consumer
      - callback raised
    """
    code = "receiver_lost"


class InternalError(ClusterError):
    """
    Worker could not be spawned or an internal invariant was violated.
    """
    code = "internal_error"


# ---------------------------------------------------------------------------
# Supervisor contract errors
# ---------------------------------------------------------------------------

class AlreadyJoinedError(ClusterError):
    """join() was already called on this listener."""
    code = "already_joined"


class ShutdownAlreadyRequestedError(ClusterError):
    """request_stop() was already called on this listener."""
    code = "shutdown_already_requested"
