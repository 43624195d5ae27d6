# bimeter/runtime/state.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from bimeter.model.datapoint import CHANNELS
from bimeter.model.meter import DEFAULT_SEQUENCE_INCREMENT
from bimeter.runtime.resolver import Direction

# Width of the device payload sequence counter.
SEQUENCE_MODULUS = 0x10000
# Width of the published counter_a / counter_b values.
COUNTER_MODULUS = 0x10000

Pending = Tuple[Optional[Direction], Optional[float], Optional[float], Optional[float]]


@dataclass
class ChannelBuffer:
    """
    Mutable per-channel reassembly state.

    sign/power/current/power_factor are the pending fields of the cycle being
    assembled (None = not received). received_at is set whenever power is
    written. last_emitted_signed_power survives flushes and gaps.
    """
    sign: Optional[Direction] = None
    power: Optional[float] = None
    current: Optional[float] = None
    power_factor: Optional[float] = None
    received_at: Optional[str] = None
    last_emitted_signed_power: Optional[float] = None
    zero_power_seen: bool = False
    zero_current_seen: bool = False
    update_counter: int = 0

    def take(self) -> Pending:
        """Read and clear the four pending fields."""
        pending = (self.sign, self.power, self.current, self.power_factor)
        self.clear_pending()
        return pending

    def clear_pending(self) -> None:
        self.sign = self.power = self.current = self.power_factor = None

    def reset_zero_flags(self) -> None:
        self.zero_power_seen = False
        self.zero_current_seen = False

    def next_counter(self) -> int:
        self.update_counter = (self.update_counter + 1) % COUNTER_MODULUS
        return self.update_counter

    # --- persistence ---
    def as_dict(self) -> Dict[str, Any]:
        return {
            "sign": self.sign.value if self.sign is not None else None,
            "power": self.power,
            "current": self.current,
            "power_factor": self.power_factor,
            "received_at": self.received_at,
            "last_emitted_signed_power": self.last_emitted_signed_power,
            "zero_power_seen": self.zero_power_seen,
            "zero_current_seen": self.zero_current_seen,
            "update_counter": self.update_counter,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ChannelBuffer":
        sign = d.get("sign")
        return cls(
            sign=Direction(int(sign)) if sign is not None else None,
            power=d.get("power"),
            current=d.get("current"),
            power_factor=d.get("power_factor"),
            received_at=d.get("received_at"),
            last_emitted_signed_power=d.get("last_emitted_signed_power"),
            zero_power_seen=bool(d.get("zero_power_seen", False)),
            zero_current_seen=bool(d.get("zero_current_seen", False)),
            update_counter=int(d.get("update_counter", 0)) % COUNTER_MODULUS,
        )


def _new_channels() -> Dict[str, ChannelBuffer]:
    return {x: ChannelBuffer() for x in CHANNELS}


@dataclass
class DeviceState:
    """
    Reassembly state of one physical device.

    last_sequence is None until the first sequenced message, which is then
    taken as the baseline rather than a gap.
    """
    device_id: str
    sequence_increment: int = DEFAULT_SEQUENCE_INCREMENT
    last_sequence: Optional[int] = None
    channels: Dict[str, ChannelBuffer] = field(default_factory=_new_channels)

    def channel(self, x: str) -> ChannelBuffer:
        return self.channels[x]

    def clear_pending(self) -> None:
        """Drop every partially assembled field of both channels."""
        for buf in self.channels.values():
            buf.clear_pending()
            buf.reset_zero_flags()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "sequence_increment": self.sequence_increment,
            "last_sequence": self.last_sequence,
            "channels": {x: buf.as_dict() for x, buf in self.channels.items()},
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DeviceState":
        last = d.get("last_sequence")
        channels = _new_channels()
        for x, cd in (d.get("channels") or {}).items():
            if x in channels and isinstance(cd, dict):
                channels[x] = ChannelBuffer.from_dict(cd)
        return cls(
            device_id=str(d["device_id"]),
            sequence_increment=int(d.get("sequence_increment", DEFAULT_SEQUENCE_INCREMENT)),
            last_sequence=int(last) if last is not None else None,
            channels=channels,
        )
