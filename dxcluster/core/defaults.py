# dxcluster/core/defaults.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ListenerDefaults:
    connect_timeout_s: float = 5.0   # TCP connect deadline
    poll_interval_s:   float = 0.25  # read tick; bounds stop latency
    auth_retries:      int   = 10    # consecutive prompt-less timeouts before giving up
    encoding:          str   = "latin-1"
    read_chunk_size:   int   = 4096
    max_line_bytes:    int   = 65536  # partial line longer than this is discarded


DEFAULTS = ListenerDefaults()

AUTH_PROMPTS: tuple[str, ...] = ("login:", "Please enter your call:")
