# bimeter/model/meter.py
from __future__ import annotations

from typing import Dict, List, Optional

from .datapoint import CHANNELS, Datapoint, FieldKind

DEFAULT_SEQUENCE_INCREMENT = 256


class MeterModel:
    """
    Static model of a bidirectional meter type.

    - Holds the datapoint table (id -> semantic field + divisor).
    - Carries the per-model calibration the reassembler needs:
        sequence_increment: step between consecutive message sequence numbers
        reverse_code:       energy flow code meaning "producing" (0 or 1)
        power_scale:        integer grid of the power readings (10 = 0.1 W),
                            used to recompute the combined A+B power exactly
    """

    def __init__(
        self,
        name: str,
        datapoints: Optional[List[Datapoint]] = None,
        *,
        sequence_increment: int = DEFAULT_SEQUENCE_INCREMENT,
        reverse_code: int = 1,
        power_scale: int = 10,
    ):
        self.name: str = name
        self.datapoints: List[Datapoint] = datapoints or []
        self.sequence_increment: int = sequence_increment
        self.reverse_code: int = reverse_code
        self.power_scale: int = power_scale

        self._validate()

    # ------------------------------------------------------------------
    # Datapoint management / access
    # ------------------------------------------------------------------
    def add_datapoint(self, dp: Datapoint) -> None:
        if any(d.dp_id == dp.dp_id for d in self.datapoints):
            raise ValueError(f"Datapoint '{dp.dp_id}' already exists in model '{self.name}'")
        self.datapoints.append(dp)
        self._validate()

    @property
    def datapoints_by_id(self) -> Dict[int, Datapoint]:
        return {d.dp_id: d for d in self.datapoints}

    def get_datapoint(self, dp_id: int) -> Optional[Datapoint]:
        return self.datapoints_by_id.get(int(dp_id))

    def channel_datapoints(self, channel: str) -> List[Datapoint]:
        return sorted(
            [d for d in self.datapoints if d.channel == channel],
            key=lambda d: d.dp_id,
        )

    @property
    def forward_code(self) -> int:
        return 1 - self.reverse_code

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "sequence_increment": self.sequence_increment,
            "reverse_code": self.reverse_code,
            "power_scale": self.power_scale,
            "datapoints": {d.dp_id: d.as_dict() for d in self.datapoints},
        }

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def _validate(self) -> None:
        if not isinstance(self.sequence_increment, int) or not 0 < self.sequence_increment < 0x10000:
            raise ValueError(
                f"Model '{self.name}' sequence_increment must be an int in [1, 65535] "
                f"(got {self.sequence_increment!r})"
            )
        if self.reverse_code not in (0, 1):
            raise ValueError(f"Model '{self.name}' reverse_code must be 0 or 1 (got {self.reverse_code!r})")
        if not isinstance(self.power_scale, int) or self.power_scale <= 0:
            raise ValueError(f"Model '{self.name}' power_scale must be a positive int")

        ids = [d.dp_id for d in self.datapoints]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate datapoint id in model '{self.name}'")

        # one datapoint per (channel, kind)
        seen = set()
        for d in self.datapoints:
            if not d.is_channel_field:
                continue
            key = (d.channel, d.kind)
            if key in seen:
                raise ValueError(
                    f"Model '{self.name}' maps {d.kind.value} of channel '{d.channel}' twice"
                )
            seen.add(key)

        combined = [d for d in self.datapoints if d.kind is FieldKind.COMBINED]
        if len(combined) > 1:
            raise ValueError(f"Model '{self.name}' declares more than one combined datapoint")

    def __repr__(self) -> str:
        return (
            f"MeterModel(name='{self.name}', datapoints={len(self.datapoints)}, "
            f"channels={list(CHANNELS)})"
        )
