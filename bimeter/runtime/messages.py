# bimeter/runtime/messages.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from bimeter.runtime.sequence import SequenceStatus


@dataclass(frozen=True)
class RawMessage:
    """
    One datapoint report as delivered by the transport.

    value is the unscaled datapoint payload; timestamp (ISO 8601) is the
    delivery time when the transport provides one.
    """
    device_id: str
    datapoint_id: int
    value: float
    sequence: int
    timestamp: Optional[str] = None


@dataclass(frozen=True)
class MeterUpdate:
    """
    Result of processing one message.

    values is sparse: a missing key means "unchanged", a None value means
    the field was explicitly published as null.
    """
    device_id: str
    sequence: Optional[int]
    sequence_status: Optional[SequenceStatus]
    values: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.values)

    def as_dict(self) -> dict:
        return {
            "device_id": self.device_id,
            "sequence": self.sequence,
            "sequence_status": self.sequence_status.value if self.sequence_status else None,
            "values": dict(self.values),
        }
