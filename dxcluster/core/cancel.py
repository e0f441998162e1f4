# dxcluster/core/cancel.py
from __future__ import annotations

import threading


class CancelToken:
    """
    One-shot cooperative stop signal shared by a listener and its worker.

    Once set it is never cleared. request() reports whether this call was the
    one that set it, so callers can reject a repeated stop request.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()

    def request(self) -> bool:
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            return True

    def is_set(self) -> bool:
        return self._event.is_set()
