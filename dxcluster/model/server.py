# dxcluster/model/server.py
from __future__ import annotations

from dataclasses import dataclass

from dxcluster.core.errors import ClusterConfigError


@dataclass(frozen=True)
class ConnectionHandle:
    """
    Identity of one cluster connection: target server plus login callsign.

    Immutable; used for thread naming and log correlation.
    """
    host: str
    port: int
    callsign: str

    def __post_init__(self) -> None:
        if not isinstance(self.host, str) or not self.host.strip():
            raise ClusterConfigError(
                "Cluster host must be a non-empty string.",
                details={"host": self.host},
            )
        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 0 < self.port < 65536:
            raise ClusterConfigError(
                f"Invalid cluster port {self.port!r}.",
                hint="Port must be an integer in 1..65535.",
                details={"host": self.host, "port": self.port},
            )
        if not isinstance(self.callsign, str) or not self.callsign.strip():
            raise ClusterConfigError(
                "Callsign must be a non-empty string.",
                hint="Servers reject logins without a callsign.",
                details={"host": self.host, "port": self.port},
            )

    @property
    def label(self) -> str:
        return f"{self.callsign}@{self.host}:{self.port}"

    def __str__(self) -> str:
        return self.label
