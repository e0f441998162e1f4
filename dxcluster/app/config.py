# dxcluster/app/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

import yaml

from dxcluster.core.defaults import DEFAULTS
from dxcluster.core.errors import ClusterConfigError, ClusterError
from dxcluster.model.loader import ClusterCatalogLoader
from dxcluster.model.server import ConnectionHandle


@dataclass(frozen=True)
class ListenerConfig:
    connect_timeout_s: float = DEFAULTS.connect_timeout_s
    poll_interval_s: float = DEFAULTS.poll_interval_s
    auth_retries: int = DEFAULTS.auth_retries
    encoding: str = DEFAULTS.encoding

    def listener_kwargs(self) -> dict:
        return {
            "poll_interval_s": self.poll_interval_s,
            "auth_retries": self.auth_retries,
            "encoding": self.encoding,
        }


@dataclass(frozen=True)
class ClusterConfig:
    servers: Tuple[ConnectionHandle, ...]
    listener: ListenerConfig = field(default_factory=ListenerConfig)

    @classmethod
    def load(cls, path: str | Path) -> "ClusterConfig":
        """Load a YAML server catalog."""
        loader = ClusterCatalogLoader(path)
        try:
            loader.load()
        except ClusterError:
            raise
        except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
            raise ClusterConfigError(
                "Failed to load cluster configuration.",
                hint=str(e),
                details={"path": str(path)},
            ) from None

        return cls(
            servers=tuple(loader.servers),
            listener=ListenerConfig(**loader.listener),
        )
