# dxcluster/app/controller.py
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, Union

from dxcluster.app.config import ClusterConfig, ListenerConfig
from dxcluster.core.errors import ClusterConfigError, ClusterError, ShutdownAlreadyRequestedError
from dxcluster.interfaces.spot_sink import SpotSink
from dxcluster.model.server import ConnectionHandle
from dxcluster.runtime.listener import Listener
from dxcluster.runtime.sinks import SpotCallback
from dxcluster.runtime.state import ListenerStatus

ListenerFactory = Callable[[ConnectionHandle], Listener]
SinkLike = Union[SpotSink, SpotCallback]
Results = Dict[ConnectionHandle, Optional[ClusterError]]


class ClusterController:
    """
    Supervises several independent listeners from one control thread.

    No reconnection: a listener that stops is reaped once and forgotten.
    """

    def __init__(
        self,
        handles: Iterable[ConnectionHandle],
        *,
        listener_config: Optional[ListenerConfig] = None,
        listener_factory: Optional[ListenerFactory] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = listener_config or ListenerConfig()
        self._log = logger or logging.getLogger(__name__)
        self._factory = listener_factory or self._default_factory

        self._listeners: Dict[ConnectionHandle, Listener] = {}
        for handle in handles:
            if handle in self._listeners:
                raise ClusterConfigError(
                    f"Duplicate cluster entry {handle.label}.",
                    details={"label": handle.label},
                )
            self._listeners[handle] = self._factory(handle)

        # started and not yet joined
        self._active: Dict[ConnectionHandle, Listener] = {}

    @classmethod
    def from_config(cls, config: ClusterConfig, **kwargs) -> "ClusterController":
        return cls(config.servers, listener_config=config.listener, **kwargs)

    def _default_factory(self, handle: ConnectionHandle) -> Listener:
        return Listener.for_handle(handle, logger=self._log, **self._config.listener_kwargs())

    @property
    def handles(self) -> List[ConnectionHandle]:
        return list(self._listeners)

    @property
    def running(self) -> List[ConnectionHandle]:
        return [h for h, l in self._active.items() if l.is_running()]

    @property
    def has_active(self) -> bool:
        return bool(self._active)

    def listener(self, handle: ConnectionHandle) -> Listener:
        return self._listeners[handle]

    def status(self) -> List[ListenerStatus]:
        return [l.status() for l in self._listeners.values()]

    def start_all(
        self,
        sink: Optional[SinkLike] = None,
        *,
        sink_factory: Optional[Callable[[ConnectionHandle], SinkLike]] = None,
        connect_timeout: Optional[float] = None,
    ) -> Results:
        """
        Start every listener. Returns the synchronous connect errors per
        handle; listeners that failed to connect are not tracked further.
        """
        if (sink is None) == (sink_factory is None):
            raise ValueError("Pass exactly one of sink / sink_factory")

        timeout = self._config.connect_timeout_s if connect_timeout is None else connect_timeout
        failures: Results = {}

        for handle, listener in self._listeners.items():
            if handle in self._active:
                continue
            target = sink if sink_factory is None else sink_factory(handle)
            try:
                listener.start(target, connect_timeout=timeout)
            except ClusterError as e:
                self._log.warning("CLUSTER_START_FAILED label=%s code=%s msg=%s", handle.label, e.code, e.message)
                failures[handle] = e
                continue
            self._active[handle] = listener

        self._log.info("CLUSTER_STARTED active=%d failed=%d", len(self._active), len(failures))
        return failures

    def reap(self) -> Results:
        """Join listeners that are no longer running; return their results."""
        done: Results = {}
        for handle, listener in list(self._active.items()):
            if listener.is_running():
                continue
            done[handle] = self._join_one(handle, listener)
            if done[handle] is not None:
                self._log.warning("LISTENER_STOPPED_UNEXPECTEDLY label=%s code=%s", handle.label, done[handle].code)
        return done

    def stop_all(self) -> None:
        for handle, listener in self._active.items():
            try:
                listener.request_stop()
            except ShutdownAlreadyRequestedError:
                self._log.debug("STOP_ALREADY_REQUESTED label=%s", handle.label)

    def join_all(self) -> Results:
        return {h: self._join_one(h, l) for h, l in list(self._active.items())}

    def _join_one(self, handle: ConnectionHandle, listener: Listener) -> Optional[ClusterError]:
        self._active.pop(handle, None)
        try:
            listener.join()
        except ClusterError as e:
            return e
        return None

    def __enter__(self) -> "ClusterController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop_all()
        self.join_all()
