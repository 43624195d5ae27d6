# bimeter/app/capture.py
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

from bimeter.core.errors import CaptureFormatError
from bimeter.runtime.messages import RawMessage


@dataclass(frozen=True)
class TimeSync:
    """Time sync request from the device (no sequence number)."""
    device_id: str


CaptureEvent = Union[RawMessage, TimeSync]


def _first(d: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in d:
            return d[k]
    return None


def parse_capture_line(line: str, *, lineno: int = 0, default_device: str = "device") -> Optional[CaptureEvent]:
    """
    One JSON object per line:
        {"device": "0xa4c1...", "dp": 101, "value": 1234, "seq": 512, "ts": "..."}
        {"device": "0xa4c1...", "type": "time_sync"}
    Blank lines and '#' comments yield None.
    """
    s = line.strip()
    if not s or s.startswith("#"):
        return None

    try:
        d = json.loads(s)
    except json.JSONDecodeError as e:
        raise CaptureFormatError(f"Line {lineno}: invalid JSON", hint=str(e)) from None
    if not isinstance(d, dict):
        raise CaptureFormatError(f"Line {lineno}: expected a JSON object")

    device_id = str(_first(d, "device", "device_id") or default_device)

    if d.get("type") == "time_sync":
        return TimeSync(device_id=device_id)

    dp = _first(d, "dp", "datapoint", "datapoint_id")
    seq = _first(d, "seq", "sequence")
    value = d.get("value")
    if dp is None or seq is None or value is None:
        raise CaptureFormatError(
            f"Line {lineno}: datapoint message needs 'dp', 'value' and 'seq'",
            details={"line": s},
        )

    try:
        return RawMessage(
            device_id=device_id,
            datapoint_id=int(dp),
            value=value,
            sequence=int(seq),
            timestamp=_first(d, "ts", "timestamp"),
        )
    except (TypeError, ValueError) as e:
        raise CaptureFormatError(f"Line {lineno}: {e}", details={"line": s}) from None


def read_capture(path: str | Path, *, default_device: str = "device") -> Iterator[CaptureEvent]:
    path = Path(path)
    if not path.exists():
        raise CaptureFormatError(f"Capture file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            ev = parse_capture_line(line, lineno=lineno, default_device=default_device)
            if ev is not None:
                yield ev
