# dxcluster/app/sinks.py
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Optional

from dxcluster.core.recording.async_writer import AsyncWriter
from dxcluster.interfaces.spot_sink import SinkClosedError, SpotSink, StopSignal
from dxcluster.model.spot import Spot


class SpotRecordingSink(SpotSink):
    """
    Appends spots to a JSON-lines file, one object per spot:

      {"received_utc": ..., "source": "CALL@host:port", "spot": {...}}

    One instance may be shared by several listeners. After close() further
    deliveries fail, which ends the delivering listener with ReceiverLost.
    """

    def __init__(
        self,
        path: Path,
        *,
        source: Optional[str] = None,
        flush_interval_s: float = 0.5,
        logger: Optional[logging.Logger] = None,
    ):
        self._path = Path(path)
        self._source = source
        self._log = logger or logging.getLogger(__name__)
        self._writer = AsyncWriter(self._path, flush_interval=flush_interval_s, logger=self._log)
        self._lock = Lock()
        self._count = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def spots_written(self) -> int:
        with self._lock:
            return self._count

    def for_source(self, source: str) -> "_SourceTaggedSink":
        """A view of this recorder that tags every record with `source`."""
        return _SourceTaggedSink(self, source)

    def deliver(
        self,
        spot: Spot,
        stop: Optional[StopSignal] = None,
        *,
        source: Optional[str] = None,
    ) -> None:
        record = {
            "received_utc": datetime.now(timezone.utc).isoformat(),
            "source": source or self._source,
            "spot": spot.as_dict(),
        }
        record = {k: v for k, v in record.items() if v is not None}

        if not self._writer.write(json.dumps(record, ensure_ascii=False)):
            raise SinkClosedError(f"recorder {self._path} is closed")
        with self._lock:
            self._count += 1

    def close(self) -> None:
        self._writer.close()
        self._log.info("RECORDER_CLOSED path=%s spots=%d", self._path, self.spots_written)


class _SourceTaggedSink(SpotSink):
    def __init__(self, recorder: SpotRecordingSink, source: str):
        self._recorder = recorder
        self._source = source

    def deliver(self, spot: Spot, stop: Optional[StopSignal] = None) -> None:
        self._recorder.deliver(spot, source=self._source)

    def close(self) -> None:
        return None
