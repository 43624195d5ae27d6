# bimeter/runtime/flush.py
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from bimeter.runtime.combined import record_emitted_power
from bimeter.runtime.options import MeterOptions, MissingDataDisposition, PowerMode
from bimeter.runtime.resolver import SIGN_LABEL, Direction, resolve_power
from bimeter.runtime.state import ChannelBuffer, Pending

# Same order as ChannelBuffer.take()
FIELDS = ("energy_flow", "power", "current", "power_factor")

# Published by the device when a channel carries no current.
ZERO_POWER_FACTOR = 100.0


def _publish(
    x: str,
    buf: ChannelBuffer,
    pending: Pending,
    names: Iterable[str],
    options: MeterOptions,
    out: Dict[str, Any],
) -> None:
    names = tuple(names)
    sign, power, current, power_factor = pending

    mode = options.power_mode(x)
    if sign is not None and power is not None:
        power_out, label = resolve_power(sign, power, mode)
    elif mode is PowerMode.SIGNED:
        # without a direction the magnitude would read as consuming
        power_out = None
        if sign is None or sign is Direction.UNKNOWN:
            label = sign.label if sign is not None else None
        else:
            label = SIGN_LABEL
    else:
        power_out = power
        label = sign.label if sign is not None else None

    values = {
        "energy_flow": label,
        "power": power_out,
        "current": current,
        "power_factor": power_factor,
    }
    for name in names:
        out[f"{name}_{x}"] = values[name]

    if "power" in names:
        out[f"timestamp_{x}"] = buf.received_at
        record_emitted_power(buf, x, out)


def flush_channel(x: str, buf: ChannelBuffer, options: MeterOptions, out: Dict[str, Any]) -> bool:
    """
    Publish channel x from its pending fields and consume them.

    A complete set (direction, power, current, power factor) is published as
    a whole. Otherwise options.missing_data_disposition decides:
      keep_all         publish nothing
      keep_present     publish the received fields only
      nullify_missing  publish all four, missing ones as None
      nullify_all      publish all four as None
    counter_x is bumped in every case. Returns True for a complete set.
    """
    pending = buf.take()
    complete = all(v is not None for v in pending)

    if complete:
        _publish(x, buf, pending, FIELDS, options, out)
    else:
        disposition = options.missing_data_disposition
        if disposition is MissingDataDisposition.KEEP_PRESENT:
            present = [name for name, v in zip(FIELDS, pending) if v is not None]
            _publish(x, buf, pending, present, options, out)
        elif disposition is MissingDataDisposition.NULLIFY_MISSING:
            _publish(x, buf, pending, FIELDS, options, out)
        elif disposition is MissingDataDisposition.NULLIFY_ALL:
            _publish(x, buf, (None, None, None, None), FIELDS, options, out)

    out[f"counter_{x}"] = buf.next_counter()
    return complete


def flush_zero(
    x: str,
    buf: ChannelBuffer,
    options: MeterOptions,
    out: Dict[str, Any],
    now: Optional[str],
) -> bool:
    """
    A zero power or current reading means "no flow": the device then stops
    sending the energy flow and reports power factor 100. That state is
    complete on its own.
    """
    buf.sign = Direction.FORWARD
    buf.power = 0.0
    buf.current = 0.0
    buf.power_factor = ZERO_POWER_FACTOR
    buf.received_at = now
    return flush_channel(x, buf, options, out)


def flush_null(
    x: str,
    buf: ChannelBuffer,
    options: MeterOptions,
    out: Dict[str, Any],
    now: Optional[str],
) -> bool:
    """Flush an isolated zero as missing data (suspected glitch)."""
    buf.clear_pending()
    buf.received_at = now
    return flush_channel(x, buf, options, out)


def publish_immediate(x: str, buf: ChannelBuffer, name: str, value: Any, out: Dict[str, Any]) -> None:
    """
    Publish one field as it arrives (no set assembly). Power is published as
    a magnitude; its signed value for the combined total uses the last
    direction received on the channel, if any.
    """
    out[f"{name}_{x}"] = value
    if name == "power":
        out[f"timestamp_{x}"] = buf.received_at
        if buf.sign is not None and buf.sign is not Direction.UNKNOWN:
            buf.last_emitted_signed_power = value * buf.sign.value
        else:
            buf.last_emitted_signed_power = None
    out[f"counter_{x}"] = buf.next_counter()
