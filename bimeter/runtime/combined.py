# bimeter/runtime/combined.py
from __future__ import annotations

from typing import Any, Dict

from bimeter.model.compute import scaled_sum
from bimeter.runtime.resolver import signed_value
from bimeter.runtime.state import ChannelBuffer, DeviceState

COMBINED_FIELD = "power_ab"


def record_emitted_power(buf: ChannelBuffer, x: str, out: Dict[str, Any]) -> bool:
    """
    Remember the signed power that `out` publishes for channel x.

    Returns True when out carries power_x. A published power whose sign
    cannot be recovered (null value, missing or unknown direction) resets the
    remembered value, so the combined total is never computed from a value
    older than what was published.
    """
    key = f"power_{x}"
    if key not in out:
        return False
    buf.last_emitted_signed_power = signed_value(out[key], out.get(f"energy_flow_{x}"))
    return True


def recompute_combined(state: DeviceState, out: Dict[str, Any], scale: int) -> None:
    """Publish power_ab from the last published signed powers of both channels."""
    a = state.channel("a").last_emitted_signed_power
    b = state.channel("b").last_emitted_signed_power
    if a is None or b is None:
        return
    out[COMBINED_FIELD] = scaled_sum([a, b], scale)
