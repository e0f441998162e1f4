# dxcluster/cli/commands.py
from __future__ import annotations

import argparse
import logging
import signal
import threading
from pathlib import Path
from typing import Callable, Optional

from dxcluster.app.config import ClusterConfig
from dxcluster.app.controller import ClusterController
from dxcluster.app.sinks import SpotRecordingSink
from dxcluster.interfaces.spot_sink import SpotSink, StopSignal
from dxcluster.model.server import ConnectionHandle
from dxcluster.model.spot import Spot
from dxcluster.runtime.listener import Listener
from dxcluster.runtime.sinks import FanoutSink

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# main-loop tick while waiting for listeners / Ctrl-C
SUPERVISE_TICK_S = 0.25


# ---------------- Spot sink ----------------

class PrintSpotSink(SpotSink):
    """Print spots to stdout as JSON."""
    def __init__(self, *, source: Optional[str] = None):
        self._source = source

    def deliver(self, spot: Spot, stop: Optional[StopSignal] = None) -> None:
        if self._source:
            print(f"{self._source} {spot.to_json()}", flush=True)
        else:
            print(spot.to_json(), flush=True)

    def close(self) -> None:
        return None

# ---------------- Logging ----------------

def configure_logging(*, verbose: int = 0, log_file: Optional[Path] = None) -> None:
    """
    Console logging on stderr, plus an optional file handler (idempotent).
    Kept in CLI (presentation-layer concern).
    """
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose >= 2:
        level = logging.DEBUG

    root = logging.getLogger()
    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(sh)
    root.setLevel(level)

    if log_file is not None:
        configure_file_logging(log_file)


def configure_file_logging(app_log_path: Path) -> None:
    root = logging.getLogger()
    app_log_path.parent.mkdir(parents=True, exist_ok=True)
    target = str(app_log_path.resolve())

    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target:
            return

    fh = logging.FileHandler(app_log_path, encoding="utf-8", delay=True)
    fh.setLevel(logging.INFO)
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(fh)

    if root.level > logging.INFO:
        root.setLevel(logging.INFO)

# ---------------- Ctrl-C ----------------

def install_stop_handler(stop: threading.Event) -> Callable[[], None]:
    """Route SIGINT into `stop`; returns a function restoring the old handler."""
    def _on_sigint(signum, frame) -> None:
        print("Ctrl-C caught")
        stop.set()

    previous = signal.signal(signal.SIGINT, _on_sigint)

    def _restore() -> None:
        signal.signal(signal.SIGINT, previous)

    return _restore

# ---------------- Commands ----------------

def cmd_listen(args: argparse.Namespace) -> int:
    listener = Listener(
        args.host,
        args.port,
        args.callsign.upper(),
        poll_interval_s=args.poll_interval,
    )

    recorder = SpotRecordingSink(args.record, source=listener.handle.label) if args.record else None
    sink: SpotSink = PrintSpotSink()
    if recorder is not None:
        sink = FanoutSink(sink, recorder)

    stop = threading.Event()
    restore = install_stop_handler(stop)
    try:
        listener.start(sink, connect_timeout=args.connect_timeout)
        print(f"Connected to {listener.handle.label}")

        while listener.is_running() and not stop.is_set():
            stop.wait(SUPERVISE_TICK_S)

        if stop.is_set() and not listener.stop_requested:
            listener.request_stop()

        listener.join()
        return 0
    finally:
        restore()
        if recorder is not None:
            recorder.close()


def cmd_watch(args: argparse.Namespace) -> int:
    config = ClusterConfig.load(args.config)
    controller = ClusterController.from_config(config)

    recorder = SpotRecordingSink(args.record) if args.record else None

    def _sink_for(handle: ConnectionHandle) -> SpotSink:
        printer = PrintSpotSink(source=handle.label)
        if recorder is None:
            return printer
        return FanoutSink(printer, recorder.for_source(handle.label))

    stop = threading.Event()
    restore = install_stop_handler(stop)
    failed = 0
    try:
        failures = controller.start_all(sink_factory=_sink_for)
        for handle, err in failures.items():
            print(f"Listener {handle.label} could not start ({err.code}: {err.message})")
        failed += len(failures)

        if not controller.has_active:
            print("No listener could be started.")
            return 1

        while controller.has_active:
            if stop.is_set():
                controller.stop_all()
                for handle, err in controller.join_all().items():
                    if err is not None:
                        print(f"Listener {handle.label} ended with {err.code}: {err.message}")
                return 0

            for handle, err in controller.reap().items():
                failed += 1
                reason = f"{err.code}: {err.message}" if err is not None else "closed"
                print(f"Listener {handle.label} stopped unexpectedly ({reason})")

            stop.wait(SUPERVISE_TICK_S)

        return 1 if failed else 0
    finally:
        restore()
        if recorder is not None:
            recorder.close()
