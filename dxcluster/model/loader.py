# dxcluster/model/loader.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from dxcluster.core.defaults import DEFAULTS
from .server import ConnectionHandle


class ClusterCatalogLoader:
    """
    Loads a cluster server catalog from YAML.

    After calling load(), exposes:
        self.callsign : default login callsign
        self.servers  : list[ConnectionHandle]
        self.listener : dict of listener options (defaults filled in)

    Raises FileNotFoundError / ValueError / yaml.YAMLError; the caller maps
    them to configuration errors.
    """

    LISTENER_KEYS = {
        "connect_timeout_s": float,
        "poll_interval_s": float,
        "auth_retries": int,
        "encoding": str,
    }

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.callsign: Optional[str] = None
        self.servers: List[ConnectionHandle] = []
        self.listener: Dict[str, Any] = {}

    # ---------------------------------------------------------------------
    # YAML utility
    # ---------------------------------------------------------------------
    def _load_yaml(self) -> dict:
        if not self.path.exists():
            raise FileNotFoundError(f"Missing cluster config file: {self.path}")

        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"{self.path.name}: root node must be a mapping")
        return data

    # ---------------------------------------------------------------------
    # Public entry point
    # ---------------------------------------------------------------------
    def load(self) -> None:
        data = self._load_yaml()

        callsign = data.get("callsign")
        if callsign is not None and not isinstance(callsign, str):
            raise ValueError("'callsign' must be a string")
        self.callsign = callsign.strip().upper() if callsign else None

        self.listener = self._load_listener(data.get("listener") or {})
        self.servers = self._load_servers(data.get("servers"))

    # ---------------------------------------------------------------------
    # Sections
    # ---------------------------------------------------------------------
    def _load_listener(self, node: Any) -> Dict[str, Any]:
        if not isinstance(node, dict):
            raise ValueError("'listener' must be a mapping")

        out: Dict[str, Any] = {
            "connect_timeout_s": DEFAULTS.connect_timeout_s,
            "poll_interval_s": DEFAULTS.poll_interval_s,
            "auth_retries": DEFAULTS.auth_retries,
            "encoding": DEFAULTS.encoding,
        }
        for key, value in node.items():
            caster = self.LISTENER_KEYS.get(key)
            if caster is None:
                raise ValueError(f"Unknown listener option '{key}' (valid: {sorted(self.LISTENER_KEYS)})")
            if isinstance(value, bool) or value is None:
                raise ValueError(f"listener.{key}: invalid value {value!r}")
            try:
                out[key] = caster(value)
            except (TypeError, ValueError):
                raise ValueError(f"listener.{key}: expected {caster.__name__}, got {value!r}") from None

        if out["poll_interval_s"] <= 0 or out["connect_timeout_s"] <= 0:
            raise ValueError("listener timeouts must be > 0")
        if out["auth_retries"] < 1:
            raise ValueError("listener.auth_retries must be >= 1")
        return out

    def _load_servers(self, node: Any) -> List[ConnectionHandle]:
        if not isinstance(node, list) or not node:
            raise ValueError("'servers' must be a non-empty list")

        servers: List[ConnectionHandle] = []
        for idx, entry in enumerate(node):
            if not isinstance(entry, dict):
                raise ValueError(f"servers[{idx}] must be a mapping")

            host = entry.get("host")
            port = entry.get("port")
            callsign = entry.get("callsign") or self.callsign
            if not host:
                raise ValueError(f"servers[{idx}] is missing 'host'")
            if port is None:
                raise ValueError(f"servers[{idx}] is missing 'port'")
            if not callsign:
                raise ValueError(f"servers[{idx}] has no callsign and no top-level 'callsign' is set")

            servers.append(ConnectionHandle(host=str(host), port=port, callsign=str(callsign).upper()))
        return servers
