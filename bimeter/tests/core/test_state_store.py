from __future__ import annotations

import json
from pathlib import Path

from bimeter.core.state_store import DeviceStateStore, load_state_json
from bimeter.runtime.resolver import Direction


def test_get_or_create_is_stable_per_device():
    store = DeviceStateStore()
    a = store.get_or_create("dev", sequence_increment=1)
    assert store.get_or_create("dev") is a
    assert a.sequence_increment == 1
    assert "dev" in store
    assert len(store) == 1

    store.forget("dev")
    assert store.get("dev") is None


def test_save_and_load_restores_reassembly_state(tmp_path: Path):
    store = DeviceStateStore()
    st = store.get_or_create("dev")
    st.last_sequence = 2048
    st.channel("a").sign = Direction.REVERSE
    st.channel("a").power = 37.1
    st.channel("b").last_emitted_signed_power = 12.0
    st.channel("b").update_counter = 9

    path = tmp_path / "state" / "devices.json"
    store.save_json(path)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["version"] == 1
    assert "updated_at_utc" in data
    assert not path.with_suffix(".json.tmp").exists()

    loaded = DeviceStateStore.load_json(path)
    assert loaded.get("dev") == st


def test_missing_or_corrupt_file_gives_empty_store(tmp_path: Path):
    assert len(DeviceStateStore.load_json(tmp_path / "none.json")) == 0

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    assert load_state_json(bad) == {}
    assert len(DeviceStateStore.load_json(bad)) == 0


def test_unreadable_device_entries_are_skipped():
    store = DeviceStateStore.from_dict(
        {
            "devices": {
                "good": {"last_sequence": 256},
                "bad": "garbage",
                "worse": {"channels": {"a": {"sign": 5}}},
            }
        }
    )
    assert [s.device_id for s in store] == ["good"]
    assert store.get("good").last_sequence == 256
