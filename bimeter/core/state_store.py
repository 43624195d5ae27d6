# bimeter/core/state_store.py
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from bimeter.model.meter import DEFAULT_SEQUENCE_INCREMENT
from bimeter.runtime.state import DeviceState

_log = logging.getLogger(__name__)

STATE_FORMAT_VERSION = 1


# ---------------- low-level json helpers ----------------

def load_state_json(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f) or {}
    except FileNotFoundError:
        return {}
    except json.JSONDecodeError as e:
        _log.warning("STATE_JSON_CORRUPT path=%s error=%s", path, e)
        return {}


def write_state_json(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    data = dict(data)
    data["updated_at_utc"] = datetime.now(timezone.utc).isoformat()

    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    tmp.replace(path)


# ---------------- store ----------------

class DeviceStateStore:
    """
    Owns one DeviceState per device identity.

    States are created on first access and never removed by the reassembler;
    dropping a device is the caller's business (forget()).
    """

    def __init__(self) -> None:
        self._states: Dict[str, DeviceState] = {}

    def get_or_create(
        self,
        device_id: str,
        *,
        sequence_increment: int = DEFAULT_SEQUENCE_INCREMENT,
    ) -> DeviceState:
        key = str(device_id)
        st = self._states.get(key)
        if st is None:
            st = DeviceState(device_id=key, sequence_increment=int(sequence_increment))
            self._states[key] = st
            _log.debug("DEVICE_STATE_CREATED device=%s seq_inc=%d", key, st.sequence_increment)
        return st

    def get(self, device_id: str) -> Optional[DeviceState]:
        return self._states.get(str(device_id))

    def forget(self, device_id: str) -> None:
        self._states.pop(str(device_id), None)

    def __contains__(self, device_id: object) -> bool:
        return str(device_id) in self._states

    def __len__(self) -> int:
        return len(self._states)

    def __iter__(self) -> Iterator[DeviceState]:
        return iter(list(self._states.values()))

    # ---------------- persistence ----------------

    def as_dict(self) -> Dict[str, Any]:
        return {
            "version": STATE_FORMAT_VERSION,
            "devices": {k: st.as_dict() for k, st in self._states.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeviceStateStore":
        store = cls()
        devices = data.get("devices") or {}
        if not isinstance(devices, dict):
            _log.warning("STATE_DEVICES_INVALID type=%s", type(devices).__name__)
            return store

        for key, d in devices.items():
            try:
                st = DeviceState.from_dict({**d, "device_id": d.get("device_id", key)})
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                _log.warning("STATE_DEVICE_SKIPPED device=%s error=%s", key, e)
                continue
            store._states[st.device_id] = st
        return store

    def save_json(self, path: str | Path) -> None:
        write_state_json(Path(path), self.as_dict())

    @classmethod
    def load_json(cls, path: str | Path) -> "DeviceStateStore":
        """Load a saved store; a missing or corrupt file yields an empty store."""
        return cls.from_dict(load_state_json(Path(path)))
