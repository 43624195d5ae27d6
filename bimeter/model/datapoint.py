# bimeter/model/datapoint.py
from __future__ import annotations

from enum import Enum
from typing import Optional

CHANNELS = ("a", "b")


class FieldKind(str, Enum):
    POWER = "power"
    CURRENT = "current"
    POWER_FACTOR = "power_factor"
    ENERGY_FLOW = "energy_flow"
    COMBINED = "combined"        # device A+B reading, never published
    PASSTHROUGH = "passthrough"  # informational, published as-is


CHANNEL_KINDS = frozenset(
    {FieldKind.POWER, FieldKind.CURRENT, FieldKind.POWER_FACTOR, FieldKind.ENERGY_FLOW}
)


class Datapoint:
    """
    Static metadata for one device datapoint id.

    - Channel datapoints (power/current/power_factor/energy_flow) belong to
      channel 'a' or 'b' and are routed into the reassembly state machine.
    - Passthrough datapoints are scaled and published unchanged.
    - The combined datapoint is recognised only so that it can be dropped.

    Scaling is raw / divisor. energy_flow carries a direction code and is
    never scaled.
    """

    def __init__(
        self,
        dp_id: int,
        name: str,
        *,
        kind: str | FieldKind = FieldKind.PASSTHROUGH,
        channel: Optional[str] = None,
        divisor: float = 1.0,
        unit: str = "",
    ):
        self.dp_id = int(dp_id)
        self.name = str(name)
        self.kind = self._parse_kind(kind)
        self.channel = channel.lower() if channel else None
        self.divisor = divisor
        self.unit = unit or ""

        self._validate()

    def _parse_kind(self, kind: str | FieldKind) -> FieldKind:
        try:
            return FieldKind(kind)
        except ValueError:
            raise ValueError(f"Unknown kind '{kind}' for datapoint {self.dp_id}") from None

    def _validate(self) -> None:
        if not self.name:
            raise ValueError(f"Datapoint {self.dp_id} must have a name")

        if self.kind in CHANNEL_KINDS:
            if self.channel not in CHANNELS:
                raise ValueError(
                    f"Datapoint {self.dp_id} ({self.kind.value}) needs channel 'a' or 'b', "
                    f"got {self.channel!r}"
                )
        elif self.channel is not None:
            raise ValueError(f"Datapoint {self.dp_id} ({self.kind.value}) must not define a channel")

        if not isinstance(self.divisor, (int, float)) or isinstance(self.divisor, bool):
            raise ValueError(f"Datapoint {self.dp_id} divisor must be numeric")
        if self.divisor <= 0:
            raise ValueError(f"Datapoint {self.dp_id} divisor must be > 0")
        if self.kind is FieldKind.ENERGY_FLOW and self.divisor != 1:
            raise ValueError(f"Energy flow datapoint {self.dp_id} must not be scaled")

    @property
    def field_name(self) -> str:
        """Output key, e.g. 'power_a' or 'voltage'."""
        if self.channel:
            return f"{self.name}_{self.channel}"
        return self.name

    @property
    def is_channel_field(self) -> bool:
        return self.kind in CHANNEL_KINDS

    def scale(self, raw_value: float) -> float:
        return float(raw_value) / float(self.divisor)

    def as_dict(self) -> dict:
        d = {
            "dp_id": self.dp_id,
            "name": self.name,
            "kind": self.kind.value,
            "divisor": self.divisor,
            "unit": self.unit,
        }
        if self.channel:
            d["channel"] = self.channel
        return d

    def __repr__(self) -> str:
        return f"Datapoint(id={self.dp_id}, field='{self.field_name}', kind={self.kind.value})"
