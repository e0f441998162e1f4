# dxcluster/runtime/worker.py
from __future__ import annotations

import logging
import threading
from typing import Optional

from dxcluster.core.cancel import CancelToken
from dxcluster.core.defaults import DEFAULTS
from dxcluster.core.errors import (
    ClusterError,
    ConnectionLostError,
    InternalError,
    UnknownIOError,
)
from dxcluster.interfaces.spot_sink import SpotSink
from dxcluster.model.server import ConnectionHandle
from dxcluster.protocol.auth import AuthNegotiator
from dxcluster.protocol.line_channel import LineChannel
from dxcluster.protocol.pump import SpotParser, StreamPump
from dxcluster.model.spot import parse_spot
from dxcluster.transport.base import Transport
from dxcluster.transport.errors import TransportClosedError, TransportError
from dxcluster.runtime.state import ListenerState, SessionPhase


class ListenerWorker(threading.Thread):
    """
    Thread owning one connected transport: authenticate, then pump spots.

    The terminal result is `error` (None for a clean or requested stop). The
    transport is closed on exit, whatever the outcome.
    """

    def __init__(
        self,
        *,
        handle: ConnectionHandle,
        transport: Transport,
        sink: SpotSink,
        cancel: CancelToken,
        state: ListenerState,
        parser: SpotParser = parse_spot,
        auth_retries: int = DEFAULTS.auth_retries,
        encoding: str = DEFAULTS.encoding,
        chunk_size: int = DEFAULTS.read_chunk_size,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(name=handle.label, daemon=True)
        self.handle = handle
        self._transport = transport
        self._sink = sink
        self._cancel = cancel
        self._state = state
        self._parser = parser
        self._auth_retries = auth_retries
        self._encoding = encoding
        self._chunk_size = chunk_size
        self._log = logger or logging.getLogger(__name__)

        self.error: Optional[ClusterError] = None

    def run(self) -> None:
        error: Optional[ClusterError] = None
        try:
            self._session()
        except ClusterError as e:
            error = e
        except TransportClosedError as e:
            error = ConnectionLostError(
                "Connection closed by server.",
                hint=str(e),
                details={"label": self.handle.label},
            )
        except TransportError as e:
            error = UnknownIOError(
                "Socket error on cluster connection.",
                hint=str(e),
                details={"label": self.handle.label},
            )
        except Exception as e:
            self._log.exception("WORKER_UNEXPECTED_ERROR label=%s", self.handle.label)
            error = InternalError(
                "Unexpected failure in listener worker.",
                hint=f"{type(e).__name__}: {e}",
                details={"label": self.handle.label},
            )
        finally:
            self._close_transport()

        if error is not None and self._cancel.is_set():
            # stop was requested; the session ends cleanly regardless
            self._log.info("WORKER_ERROR_AFTER_STOP label=%s code=%s", self.handle.label, error.code)
            error = None

        self.error = error
        if error is None:
            self._state.set_phase(SessionPhase.STOPPED)
        else:
            self._state.set_phase(SessionPhase.FAILED, error=f"{error.code}: {error.message}")

        self._log.info(
            "WORKER_EXIT label=%s phase=%s error=%s",
            self.handle.label,
            self._state.phase.value,
            error.code if error else None,
        )
        self._state.mark_stopped()

    def _session(self) -> None:
        channel = LineChannel(
            self._transport,
            encoding=self._encoding,
            chunk_size=self._chunk_size,
            stop=self._cancel,
            logger=self._log,
        )

        self._state.set_phase(SessionPhase.AUTHENTICATING)
        negotiator = AuthNegotiator(
            channel,
            self.handle.callsign,
            stop=self._cancel,
            retries=self._auth_retries,
            logger=self._log,
        )
        if not negotiator.run():
            return

        self._log.info("AUTHENTICATED label=%s", self.handle.label)
        self._state.set_phase(SessionPhase.STREAMING)

        pump = StreamPump(
            channel,
            self._sink,
            stop=self._cancel,
            parser=self._parser,
            on_line=self._state.count_line,
            logger=self._log,
        )
        pump.run()

    def _close_transport(self) -> None:
        try:
            self._transport.close()
        except Exception:
            self._log.exception("TRANSPORT_CLOSE_FAILED label=%s", self.handle.label)
