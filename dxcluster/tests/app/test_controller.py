from __future__ import annotations

import pytest

from dxcluster.app.config import ClusterConfig, ListenerConfig
from dxcluster.app.controller import ClusterController
from dxcluster.core.errors import (
    ClusterConfigError,
    ConnectError,
    ConnectionLostError,
    ShutdownAlreadyRequestedError,
)
from dxcluster.model.server import ConnectionHandle
from dxcluster.runtime.listener import Listener
from dxcluster.runtime.state import ListenerStatus, RunState, SessionPhase

A = ConnectionHandle("a.example.net", 7300, "N0CALL")
B = ConnectionHandle("b.example.net", 7300, "N0CALL")


class FakeListener:
    def __init__(self, handle):
        self.handle = handle
        self.start_error = None
        self.join_error = None
        self.running = False
        self.started_with = None
        self.stop_calls = 0
        self.join_calls = 0

    def start(self, sink, connect_timeout=None):
        if self.start_error is not None:
            raise self.start_error
        self.started_with = (sink, connect_timeout)
        self.running = True

    def request_stop(self):
        self.stop_calls += 1
        if self.stop_calls > 1:
            raise ShutdownAlreadyRequestedError("again")
        self.running = False

    def is_running(self):
        return self.running

    def join(self):
        self.join_calls += 1
        if self.join_error is not None:
            raise self.join_error

    def status(self):
        state = RunState.RUNNING if self.running else RunState.STOPPED
        return ListenerStatus(self.handle, state, SessionPhase.STREAMING)


def make(handles=(A, B), **kwargs):
    fakes = {}

    def factory(handle):
        fakes[handle] = FakeListener(handle)
        return fakes[handle]

    return ClusterController(handles, listener_factory=factory, **kwargs), fakes


def test_duplicate_handles_rejected():
    with pytest.raises(ClusterConfigError):
        make((A, A))


def test_start_all_with_shared_sink():
    ctl, fakes = make(listener_config=ListenerConfig(connect_timeout_s=2.5))
    sink = object()

    failures = ctl.start_all(sink)

    assert failures == {}
    assert fakes[A].started_with == (sink, 2.5)
    assert fakes[B].started_with == (sink, 2.5)
    assert sorted(h.host for h in ctl.running) == ["a.example.net", "b.example.net"]
    assert ctl.has_active is True


def test_start_all_with_sink_factory_and_timeout_override():
    ctl, fakes = make()

    ctl.start_all(sink_factory=lambda h: h.label, connect_timeout=1.0)

    assert fakes[A].started_with == (A.label, 1.0)
    assert fakes[B].started_with == (B.label, 1.0)


def test_start_all_needs_exactly_one_sink_source():
    ctl, _ = make()
    with pytest.raises(ValueError):
        ctl.start_all()
    with pytest.raises(ValueError):
        ctl.start_all(object(), sink_factory=lambda h: object())


def test_connect_failures_are_reported_not_raised():
    ctl, fakes = make()
    fakes[A].start_error = ConnectError("refused")

    failures = ctl.start_all(object())

    assert list(failures) == [A]
    assert isinstance(failures[A], ConnectError)
    assert ctl.running == [B]


def test_reap_joins_stopped_listeners_once():
    ctl, fakes = make()
    ctl.start_all(object())

    assert ctl.reap() == {}

    fakes[A].running = False
    fakes[A].join_error = ConnectionLostError("gone")
    done = ctl.reap()

    assert list(done) == [A]
    assert isinstance(done[A], ConnectionLostError)
    assert fakes[A].join_calls == 1
    assert ctl.reap() == {}
    assert ctl.running == [B]


def test_stop_all_then_join_all():
    ctl, fakes = make()
    ctl.start_all(object())

    ctl.stop_all()
    ctl.stop_all()
    results = ctl.join_all()

    assert results == {A: None, B: None}
    assert fakes[A].stop_calls == 2
    assert ctl.has_active is False


def test_context_manager_stops_and_joins():
    ctl, fakes = make()
    with ctl:
        ctl.start_all(object())

    assert fakes[A].join_calls == 1
    assert fakes[B].join_calls == 1
    assert ctl.has_active is False


def test_status_covers_every_listener():
    ctl, _ = make()
    assert [s.handle for s in ctl.status()] == [A, B]


def test_from_config_builds_real_listeners():
    cfg = ClusterConfig(servers=(A,), listener=ListenerConfig(poll_interval_s=0.1, auth_retries=4))
    ctl = ClusterController.from_config(cfg)

    listener = ctl.listener(A)
    assert isinstance(listener, Listener)
    assert listener.handle == A
    assert ctl.handles == [A]
    assert listener.status().run_state is RunState.NOT_STARTED
