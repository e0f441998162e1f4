from __future__ import annotations

import pytest

from dxcluster.app.config import ClusterConfig, ListenerConfig
from dxcluster.core.errors import ClusterConfigError
from dxcluster.model.server import ConnectionHandle

CATALOG = """
callsign: N0CALL
listener:
  connect_timeout_s: 3
  poll_interval_s: 0.5
servers:
  - host: dxc.example.net
    port: 7300
  - host: cluster.example.org
    port: 8000
    callsign: N0CALL-2
"""


def test_load_catalog(tmp_path):
    p = tmp_path / "clusters.yml"
    p.write_text(CATALOG, encoding="utf-8")

    cfg = ClusterConfig.load(p)

    assert cfg.servers == (
        ConnectionHandle("dxc.example.net", 7300, "N0CALL"),
        ConnectionHandle("cluster.example.org", 8000, "N0CALL-2"),
    )
    assert cfg.listener == ListenerConfig(connect_timeout_s=3.0, poll_interval_s=0.5)
    assert cfg.listener.listener_kwargs() == {
        "poll_interval_s": 0.5,
        "auth_retries": 10,
        "encoding": "latin-1",
    }


@pytest.mark.parametrize(
    "text",
    [
        "servers: [unclosed\n",
        "callsign: N0CALL\nservers: []\n",
        "callsign: N0CALL\nservers:\n  - {host: a, port: 0}\n",
    ],
)
def test_bad_catalog_is_config_error(tmp_path, text):
    p = tmp_path / "bad.yml"
    p.write_text(text, encoding="utf-8")

    with pytest.raises(ClusterConfigError) as ei:
        ClusterConfig.load(p)
    assert ei.value.code == "config_error"


def test_missing_catalog_is_config_error(tmp_path):
    with pytest.raises(ClusterConfigError) as ei:
        ClusterConfig.load(tmp_path / "missing.yml")
    assert "missing.yml" in ei.value.hint
