# dxcluster/runtime/listener.py
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Union

from dxcluster.core.cancel import CancelToken
from dxcluster.core.defaults import DEFAULTS
from dxcluster.core.errors import (
    AlreadyJoinedError,
    ConnectError,
    ConnectTimeoutError,
    InternalError,
    ShutdownAlreadyRequestedError,
)
from dxcluster.interfaces.spot_sink import SpotSink
from dxcluster.model.server import ConnectionHandle
from dxcluster.model.spot import parse_spot
from dxcluster.protocol.pump import SpotParser
from dxcluster.transport.base import Transport
from dxcluster.transport.errors import TransportOpenError, TransportTimeoutError
from dxcluster.transport.tcp import TcpTransport
from dxcluster.runtime.sinks import SpotCallback, as_sink
from dxcluster.runtime.state import ListenerState, ListenerStatus, RunState, SessionPhase
from dxcluster.runtime.worker import ListenerWorker

# (host, port, read_timeout) -> unopened transport
TransportFactory = Callable[[str, int, float], Transport]


def _tcp_factory(host: str, port: int, read_timeout: float) -> Transport:
    return TcpTransport(host, port, read_timeout=read_timeout)


class Listener:
    """
    Supervisor of one DX cluster connection.

    Responsibilities:
      - open the TCP connection synchronously in start()
      - spawn exactly one worker thread that logs in and pumps spots
      - expose stop request, liveness, status and the terminal result

    Lifecycle: start() once, request_stop() at most once, join() once.
    A stop requested before start() makes start() a no-op and join() clean.
    Stop latency is bounded by one poll interval plus in-flight I/O.
    """

    def __init__(
        self,
        host: str,
        port: int,
        callsign: str,
        *,
        poll_interval_s: float = DEFAULTS.poll_interval_s,
        auth_retries: int = DEFAULTS.auth_retries,
        encoding: str = DEFAULTS.encoding,
        parser: SpotParser = parse_spot,
        transport_factory: TransportFactory = _tcp_factory,
        logger: Optional[logging.Logger] = None,
    ):
        self._handle = ConnectionHandle(host=host, port=port, callsign=callsign)
        self._poll_interval_s = float(poll_interval_s)
        self._auth_retries = int(auth_retries)
        self._encoding = encoding
        self._parser = parser
        self._transport_factory = transport_factory
        self._log = logger or logging.getLogger(__name__)

        self._lock = threading.Lock()
        self._cancel = CancelToken()
        self._state = ListenerState(self._handle)
        self._worker: Optional[ListenerWorker] = None
        self._started = False
        self._short_circuited = False
        self._joined = False

    @classmethod
    def for_handle(cls, handle: ConnectionHandle, **kwargs) -> "Listener":
        return cls(handle.host, handle.port, handle.callsign, **kwargs)

    # --- identity ---
    @property
    def handle(self) -> ConnectionHandle:
        return self._handle

    @property
    def host(self) -> str:
        return self._handle.host

    @property
    def port(self) -> int:
        return self._handle.port

    @property
    def callsign(self) -> str:
        return self._handle.callsign

    # --- control ---
    def start(
        self,
        sink: Union[SpotSink, SpotCallback],
        connect_timeout: float = DEFAULTS.connect_timeout_s,
    ) -> None:
        spot_sink = as_sink(sink)

        with self._lock:
            if self._started:
                raise InternalError(
                    "Listener already started.",
                    hint="Create a new Listener per connection.",
                    details={"label": self._handle.label},
                )
            self._started = True

            if self._cancel.is_set():
                self._short_circuited = True
                self._state.mark_stopped()
                self._log.info("LISTENER_START_SKIPPED label=%s reason=stop_requested", self._handle.label)
                return

        self._log.info("LISTENER_CONNECTING label=%s timeout_s=%s", self._handle.label, connect_timeout)
        transport = self._transport_factory(self._handle.host, self._handle.port, self._poll_interval_s)

        try:
            transport.open(timeout=connect_timeout)
        except TransportTimeoutError as e:
            self._fail_start("CONNECT_TIMEOUT", e)
            raise ConnectTimeoutError(
                f"Timed out connecting to {self._handle.host}:{self._handle.port}.",
                hint=str(e),
                details={"label": self._handle.label, "timeout_s": connect_timeout},
            ) from None
        except TransportOpenError as e:
            self._fail_start("CONNECT_FAILED", e)
            raise ConnectError(
                f"Could not connect to {self._handle.host}:{self._handle.port}.",
                hint=str(e),
                details={"label": self._handle.label},
            ) from None

        worker = ListenerWorker(
            handle=self._handle,
            transport=transport,
            sink=spot_sink,
            cancel=self._cancel,
            state=self._state,
            parser=self._parser,
            auth_retries=self._auth_retries,
            encoding=self._encoding,
            logger=self._log,
        )

        self._state.mark_running()
        with self._lock:
            self._worker = worker
        try:
            worker.start()
        except RuntimeError as e:
            with self._lock:
                self._worker = None
            try:
                transport.close()
            except Exception:
                self._log.exception("TRANSPORT_CLOSE_FAILED label=%s", self._handle.label)
            self._fail_start("WORKER_SPAWN_FAILED", e)
            raise InternalError(
                "Failed to spawn listener worker.",
                hint=str(e),
                details={"label": self._handle.label},
            ) from None

        self._log.info("LISTENER_CONNECTED label=%s", self._handle.label)

    def request_stop(self) -> None:
        if not self._cancel.request():
            raise ShutdownAlreadyRequestedError(
                "Stop was already requested.",
                details={"label": self._handle.label},
            )
        self._log.info("LISTENER_STOP_REQUESTED label=%s", self._handle.label)

    @property
    def stop_requested(self) -> bool:
        return self._cancel.is_set()

    def is_running(self) -> bool:
        return self._state.run_state is RunState.RUNNING

    def status(self) -> ListenerStatus:
        return self._state.snapshot()

    def join(self) -> None:
        """
        Wait for the worker and return its result: None, or raise its error.
        """
        with self._lock:
            if self._joined:
                raise AlreadyJoinedError(
                    "Listener was already joined.",
                    details={"label": self._handle.label},
                )
            if self._worker is None and not self._short_circuited:
                raise InternalError(
                    "Listener has no worker to join.",
                    hint="start() was not called or did not connect.",
                    details={"label": self._handle.label},
                )
            self._joined = True
            worker = self._worker

        if worker is None:
            return

        worker.join()
        if worker.error is not None:
            raise worker.error

    def _fail_start(self, event: str, exc: Exception) -> None:
        self._log.warning("%s label=%s err=%s", event, self._handle.label, exc)
        self._state.set_phase(SessionPhase.FAILED, error=str(exc))
        self._state.mark_stopped()

    def __repr__(self) -> str:
        return f"Listener({self._handle.label}, state={self._state.run_state.value})"
