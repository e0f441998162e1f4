# dxcluster/runtime/state.py
from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from dxcluster.model.server import ConnectionHandle


class RunState(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    STOPPED = "stopped"


class SessionPhase(str, Enum):
    """Connecting -> Authenticating -> Streaming -> {Stopped | Failed}."""
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    STREAMING = "streaming"
    STOPPED = "stopped"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (SessionPhase.STOPPED, SessionPhase.FAILED)


@dataclass(frozen=True)
class ListenerStatus:
    """
    A snapshot of one listener, safe to share across threads.
    """
    handle: ConnectionHandle
    run_state: RunState
    phase: SessionPhase
    lines_received: int = 0
    spots_delivered: int = 0
    lines_dropped: int = 0
    last_error: Optional[str] = None


class ListenerState:
    """
    Mutable state shared by a Listener and its worker.

    Write discipline: the Listener writes before the worker is spawned, the
    worker is the only writer afterwards. Readers take snapshots.
    """

    def __init__(self, handle: ConnectionHandle):
        self._handle = handle
        self._lock = threading.Lock()
        self._run_state = RunState.NOT_STARTED
        self._phase = SessionPhase.CONNECTING
        self._lines = 0
        self._spots = 0
        self._dropped = 0
        self._last_error: Optional[str] = None

    @property
    def run_state(self) -> RunState:
        with self._lock:
            return self._run_state

    @property
    def phase(self) -> SessionPhase:
        with self._lock:
            return self._phase

    def mark_running(self) -> None:
        with self._lock:
            self._run_state = RunState.RUNNING

    def mark_stopped(self) -> None:
        with self._lock:
            self._run_state = RunState.STOPPED

    def set_phase(self, phase: SessionPhase, *, error: Optional[str] = None) -> None:
        with self._lock:
            if self._phase.terminal:
                return
            self._phase = phase
            if error is not None:
                self._last_error = error

    def count_line(self, parsed: bool) -> None:
        with self._lock:
            self._lines += 1
            if parsed:
                self._spots += 1
            else:
                self._dropped += 1

    def snapshot(self) -> ListenerStatus:
        with self._lock:
            return ListenerStatus(
                handle=self._handle,
                run_state=self._run_state,
                phase=self._phase,
                lines_received=self._lines,
                spots_delivered=self._spots,
                lines_dropped=self._dropped,
                last_error=self._last_error,
            )
