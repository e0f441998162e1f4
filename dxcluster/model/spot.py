# dxcluster/model/spot.py
"""
DX spot model and the default line parser.

Typical spot lines:
  DX de W3LPL:     14074.0  JA1ABC       FT8 -15dB                1234Z
  DX de OH6BG-#:    7026.0  W4GNS        CQ                        1322Z JN58
"""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass
from typing import Optional


class SpotParseError(ValueError):
    """Line is not a DX spot."""


SPOT_RE = re.compile(
    r"^DX\s+de\s+"
    r"(?P<spotter>[A-Z0-9/#\-]+)\s*:\s*"
    r"(?P<freq>\d+(?:\.\d+)?)\s+"
    r"(?P<dx_call>[A-Z0-9/\-]+)"
    r"(?P<rest>.*)$",
    re.IGNORECASE,
)

# trailing "1234Z" optionally followed by a Maidenhead locator
TAIL_RE = re.compile(
    r"(?:^|\s)(?P<time>[0-2]\d[0-5]\d)Z(?:\s+(?P<locator>[A-R]{2}\d{2}(?:[A-X]{2})?))?$",
    re.IGNORECASE,
)

MODE_PATTERNS = [
    (re.compile(r"\bFT8\b", re.I), "FT8"),
    (re.compile(r"\bFT4\b", re.I), "FT4"),
    (re.compile(r"\bCW\b", re.I), "CW"),
    (re.compile(r"\bSSB\b", re.I), "SSB"),
    (re.compile(r"\bRTTY\b", re.I), "RTTY"),
    (re.compile(r"\bPSK\d*\b", re.I), "PSK"),
    (re.compile(r"\bJS8\b", re.I), "JS8"),
]

BANDS = [
    (1800, 2000, "160m"),
    (3500, 4000, "80m"),
    (5330, 5410, "60m"),
    (7000, 7300, "40m"),
    (10100, 10150, "30m"),
    (14000, 14350, "20m"),
    (18068, 18168, "17m"),
    (21000, 21450, "15m"),
    (24890, 24990, "12m"),
    (28000, 29700, "10m"),
    (50000, 54000, "6m"),
    (144000, 148000, "2m"),
]


def freq_to_band(freq_khz: float) -> Optional[str]:
    for low, high, name in BANDS:
        if low <= freq_khz <= high:
            return name
    return None


@dataclass(frozen=True)
class Spot:
    """A parsed DX cluster announcement."""
    spotter: str
    frequency_khz: float
    dx_call: str
    comment: str = ""
    time_utc: Optional[str] = None   # "HHMM"
    locator: Optional[str] = None

    @property
    def band(self) -> Optional[str]:
        return freq_to_band(self.frequency_khz)

    @property
    def mode(self) -> Optional[str]:
        for pattern, name in MODE_PATTERNS:
            if pattern.search(self.comment):
                return name
        return None

    def as_dict(self) -> dict:
        d = asdict(self)
        d["band"] = self.band
        d["mode"] = self.mode
        return d

    def to_json(self) -> str:
        return json.dumps(self.as_dict(), ensure_ascii=False)


def parse_spot(line: str) -> Spot:
    """Parse one cleaned server line; raise SpotParseError if it is not a spot."""
    m = SPOT_RE.match(line.strip())
    if not m:
        raise SpotParseError(f"not a spot line: {line[:40]!r}")

    rest = m.group("rest").strip()
    time_utc = None
    locator = None
    tail = TAIL_RE.search(rest)
    if tail:
        time_utc = tail.group("time")
        locator = tail.group("locator").upper() if tail.group("locator") else None
        rest = rest[: tail.start()].strip()

    return Spot(
        spotter=m.group("spotter").upper(),
        frequency_khz=float(m.group("freq")),
        dx_call=m.group("dx_call").upper(),
        comment=rest,
        time_utc=time_utc,
        locator=locator,
    )
