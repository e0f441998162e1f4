from __future__ import annotations

import json

import pytest

from dxcluster.app.sinks import SpotRecordingSink
from dxcluster.interfaces.spot_sink import SinkClosedError
from dxcluster.model.spot import Spot

SPOT = Spot("K1ABC", 14025.0, "W1XYZ", comment="CW", time_utc="1234")


def read_records(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_spots_are_appended_as_json_lines(tmp_path):
    path = tmp_path / "out" / "spots.jsonl"
    rec = SpotRecordingSink(path, source="N0CALL@h:1", flush_interval_s=0.01)

    rec.deliver(SPOT)
    rec.deliver(Spot("K1ABC", 7025.0, "W2XYZ"))
    rec.close()

    records = read_records(path)
    assert rec.spots_written == 2
    assert [r["spot"]["dx_call"] for r in records] == ["W1XYZ", "W2XYZ"]
    assert records[0]["source"] == "N0CALL@h:1"
    assert records[0]["spot"]["band"] == "20m"
    assert "received_utc" in records[0]


def test_source_views_tag_records(tmp_path):
    path = tmp_path / "spots.jsonl"
    rec = SpotRecordingSink(path, flush_interval_s=0.01)

    rec.for_source("A@h:1").deliver(SPOT)
    rec.for_source("B@h:2").deliver(SPOT)
    rec.deliver(SPOT)
    rec.close()

    records = read_records(path)
    assert [r.get("source") for r in records] == ["A@h:1", "B@h:2", None]


def test_delivery_after_close_fails(tmp_path):
    rec = SpotRecordingSink(tmp_path / "spots.jsonl")
    rec.close()

    with pytest.raises(SinkClosedError):
        rec.deliver(SPOT)
    with pytest.raises(SinkClosedError):
        rec.for_source("A@h:1").deliver(SPOT)


def test_close_is_idempotent(tmp_path):
    rec = SpotRecordingSink(tmp_path / "spots.jsonl")
    rec.close()
    rec.close()
