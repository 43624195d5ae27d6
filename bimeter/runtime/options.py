# bimeter/runtime/options.py
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Mapping

from bimeter.core.errors import OptionsError
from bimeter.model.datapoint import CHANNELS


class TriggerMode(str, Enum):
    """Which arrival publishes a channel's buffered fields."""
    POWER_FACTOR = "power_factor"  # last field of a channel group
    ENERGY_FLOW = "energy_flow"    # firmware that sends the direction one cycle late
    IMMEDIATE = "immediate"        # every field published on arrival


class PowerMode(str, Enum):
    UNSIGNED = "unsigned"  # magnitude + consuming/producing label
    SIGNED = "signed"      # sign carried by the value, label "sign"


class MissingDataDisposition(str, Enum):
    KEEP_ALL = "keep_all"
    KEEP_PRESENT = "keep_present"
    NULLIFY_MISSING = "nullify_missing"
    NULLIFY_ALL = "nullify_all"


# option names used by existing converter configurations
_DISPOSITION_ALIASES = {"keep_missing": MissingDataDisposition.KEEP_PRESENT}
_TRIGGER_ALIASES = {
    "at_power_factor": TriggerMode.POWER_FACTOR,
    "at_energy_flow": TriggerMode.ENERGY_FLOW,
}


def _as_bool(key: str, v: Any) -> bool:
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off"):
        return False
    raise OptionsError(f"Invalid boolean for '{key}': {v!r}", hint="use true/false")


def _as_enum(key: str, v: Any, enum_cls, aliases: Mapping[str, Any]):
    if isinstance(v, enum_cls):
        return v
    s = str(v).strip().lower()
    if s in aliases:
        return aliases[s]
    try:
        return enum_cls(s)
    except ValueError:
        allowed = sorted([e.value for e in enum_cls] + list(aliases))
        raise OptionsError(
            f"Invalid value for '{key}': {v!r}",
            hint="allowed: " + ", ".join(allowed),
        ) from None


@dataclass(frozen=True)
class MeterOptions:
    """
    Per-device reassembly policy.

    Every axis is a closed enumeration chosen once per device (or channel)
    and handed to the flush routines explicitly.
    """
    trigger_a: TriggerMode = TriggerMode.POWER_FACTOR
    trigger_b: TriggerMode = TriggerMode.POWER_FACTOR
    power_mode_a: PowerMode = PowerMode.UNSIGNED
    power_mode_b: PowerMode = PowerMode.UNSIGNED
    single_zero_suppression: bool = False
    missing_message_detection: bool = True
    missing_data_disposition: MissingDataDisposition = MissingDataDisposition.KEEP_ALL

    def trigger(self, channel: str) -> TriggerMode:
        return self.trigger_a if channel == "a" else self.trigger_b

    def power_mode(self, channel: str) -> PowerMode:
        return self.power_mode_a if channel == "a" else self.power_mode_b

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "MeterOptions":
        """
        Build options from a loosely-typed mapping (YAML, CLI, device config).

        Recognised keys (case-insensitive):
          late_energy_flow_<x>          bool -> trigger energy_flow
          publishing_mode_<x>           immediate | power_factor | energy_flow
          signed_power_<x>              bool
          single_zero_remove            bool (alias: single_zero_suppression)
          missing_message_detection     bool
          missing_data_behavior         keep_all | keep_present | nullify_missing | nullify_all
                                        (alias: missing_data_disposition)
        Unknown keys raise OptionsError.
        """
        opts = cls()
        for key_raw, v in dict(data or {}).items():
            key = str(key_raw).strip().lower()

            if key in ("single_zero_remove", "single_zero_suppression"):
                opts = replace(opts, single_zero_suppression=_as_bool(key, v))
                continue
            if key == "missing_message_detection":
                opts = replace(opts, missing_message_detection=_as_bool(key, v))
                continue
            if key in ("missing_data_behavior", "missing_data_disposition"):
                opts = replace(
                    opts,
                    missing_data_disposition=_as_enum(key, v, MissingDataDisposition, _DISPOSITION_ALIASES),
                )
                continue

            prefix, _, channel = key.rpartition("_")
            if channel not in CHANNELS:
                raise OptionsError(f"Unknown option '{key_raw}'")

            if prefix == "late_energy_flow":
                mode = TriggerMode.ENERGY_FLOW if _as_bool(key, v) else TriggerMode.POWER_FACTOR
                opts = replace(opts, **{f"trigger_{channel}": mode})
            elif prefix == "publishing_mode":
                mode = _as_enum(key, v, TriggerMode, _TRIGGER_ALIASES)
                opts = replace(opts, **{f"trigger_{channel}": mode})
            elif prefix == "signed_power":
                mode = PowerMode.SIGNED if _as_bool(key, v) else PowerMode.UNSIGNED
                opts = replace(opts, **{f"power_mode_{channel}": mode})
            else:
                raise OptionsError(f"Unknown option '{key_raw}'")

        return opts

    def as_dict(self) -> dict:
        return {
            "publishing_mode_a": self.trigger_a.value,
            "publishing_mode_b": self.trigger_b.value,
            "signed_power_a": self.power_mode_a is PowerMode.SIGNED,
            "signed_power_b": self.power_mode_b is PowerMode.SIGNED,
            "single_zero_remove": self.single_zero_suppression,
            "missing_message_detection": self.missing_message_detection,
            "missing_data_behavior": self.missing_data_disposition.value,
        }
