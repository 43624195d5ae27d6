from __future__ import annotations

import json
from pathlib import Path
from typing import List

from bimeter.app.capture import TimeSync
from bimeter.app.config import BimeterConfig
from bimeter.app.runner import finish_run, replay, start_run
from bimeter.app.sinks import JsonlUpdateSink
from bimeter.core.state_store import DeviceStateStore
from bimeter.runtime.messages import MeterUpdate, RawMessage


class FakeSink:
    def __init__(self) -> None:
        self.updates: List[MeterUpdate] = []

    def on_update(self, update: MeterUpdate) -> None:
        self.updates.append(update)

    def close(self) -> None:
        pass


def _cycle(start: int) -> list:
    return [
        RawMessage("dev", 102, 0, start, "t"),
        RawMessage("dev", 101, 798, start + 256, "t"),
        RawMessage("dev", 113, 1500, start + 512, "t"),
        RawMessage("dev", 110, 95, start + 768, "t"),
    ]


def test_replay_counts_and_fans_out(tmp_path: Path):
    run = start_run(BimeterConfig())
    sink = FakeSink()

    events = _cycle(0) + [TimeSync("dev"), RawMessage("dev", 112, 2301, 1280)]
    events += [RawMessage("dev", 112, 2301, 1280), RawMessage("dev", 112, 2302, 4096)]

    stats = replay(run, events, [sink])

    assert stats.messages == 7
    assert stats.time_syncs == 1
    assert stats.duplicates == 1
    assert stats.gaps == 1
    assert stats.updates == 4
    assert sink.updates[0].values["power_a"] == 79.8
    assert sink.updates[0].values["timestamp_a"] == "t"
    assert sink.updates[-1].values == {"voltage": 230.2}


def test_state_is_carried_across_runs(tmp_path: Path):
    state = tmp_path / "state.json"
    cfg = BimeterConfig(state_path=state)

    run = start_run(cfg)
    replay(run, _cycle(0)[:2])
    finish_run(run)
    assert DeviceStateStore.load_json(state).get("dev").last_sequence == 256

    # second half of the cycle completes the snapshot started before
    run = start_run(cfg)
    sink = FakeSink()
    replay(run, _cycle(0)[2:], [sink])
    assert sink.updates[0].values["power_a"] == 79.8
    assert sink.updates[0].sequence == 768


def test_jsonl_sink_writes_non_empty_updates(tmp_path: Path):
    out = tmp_path / "out" / "updates.jsonl"
    sink = JsonlUpdateSink(out)

    run = start_run(BimeterConfig())
    replay(run, _cycle(0), [sink])
    sink.close()
    sink.close()

    lines = out.read_text(encoding="utf-8").splitlines()
    assert sink.written == 1
    rec = json.loads(lines[0])
    assert rec["device_id"] == "dev"
    assert rec["sequence_status"] == "in_order"
    assert rec["values"]["energy_flow_a"] == "consuming"
