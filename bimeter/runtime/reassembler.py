# bimeter/runtime/reassembler.py
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from bimeter.core.state_store import DeviceStateStore
from bimeter.model.datapoint import Datapoint, FieldKind
from bimeter.model.meter import MeterModel
from bimeter.runtime.combined import recompute_combined
from bimeter.runtime.flush import flush_channel, flush_null, flush_zero, publish_immediate
from bimeter.runtime.messages import MeterUpdate, RawMessage
from bimeter.runtime.options import MeterOptions, TriggerMode
from bimeter.runtime.resolver import Direction, resolve_direction
from bimeter.runtime.sequence import SequenceStatus, SequenceTracker
from bimeter.runtime.state import ChannelBuffer, DeviceState

Clock = Callable[[], str]


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Reassembler:
    """
    Rebuilds coherent per-channel snapshots from single-datapoint messages.

    One call to process() handles one message completely:
      sequence check -> datapoint lookup -> buffer update -> flush decision
      -> combined A+B recomputation -> sparse MeterUpdate.

    Device state lives in the injected DeviceStateStore; options can be set
    per device and default to the ones given at construction. process() does
    not raise for bad input: unmapped datapoints and non-numeric or non-finite
    values yield an empty update.
    """

    def __init__(
        self,
        model: MeterModel,
        *,
        store: Optional[DeviceStateStore] = None,
        options: Optional[MeterOptions] = None,
        clock: Optional[Clock] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._model = model
        self._store = store if store is not None else DeviceStateStore()
        self._default_options = options or MeterOptions()
        self._device_options: Dict[str, MeterOptions] = {}
        self._clock = clock or _utc_now_iso
        self._log = logger or logging.getLogger(__name__)
        self._tracker = SequenceTracker(logger=self._log)

    @property
    def model(self) -> MeterModel:
        return self._model

    @property
    def store(self) -> DeviceStateStore:
        return self._store

    def set_options(self, device_id: str, options: MeterOptions) -> None:
        self._device_options[str(device_id)] = options

    def options_for(self, device_id: str) -> MeterOptions:
        return self._device_options.get(str(device_id), self._default_options)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def process(self, msg: RawMessage) -> MeterUpdate:
        state = self._state_for(msg.device_id)
        options = self.options_for(msg.device_id)

        try:
            seq = int(msg.sequence)
        except (TypeError, ValueError):
            self._log.warning("MESSAGE_SEQ_INVALID device=%s seq=%r", msg.device_id, msg.sequence)
            return MeterUpdate(device_id=state.device_id, sequence=None, sequence_status=None)

        status = self._tracker.observe(state, seq)
        if status is SequenceStatus.GAP and options.missing_message_detection:
            state.clear_pending()
            self._log.debug("PENDING_CLEARED device=%s seq=%d", state.device_id, seq)

        out: Dict[str, Any] = {}
        dp = self._lookup(msg.datapoint_id)
        if dp is None:
            self._log.debug("DATAPOINT_UNMAPPED device=%s dp=%r", state.device_id, msg.datapoint_id)
        else:
            try:
                raw = float(msg.value)
                if not math.isfinite(raw):
                    raise ValueError(raw)
            except (TypeError, ValueError):
                self._log.warning(
                    "DATAPOINT_VALUE_INVALID device=%s dp=%d value=%r",
                    state.device_id,
                    dp.dp_id,
                    msg.value,
                )
            else:
                self._dispatch(state, dp, raw, options, out, msg.timestamp)

        return MeterUpdate(
            device_id=state.device_id,
            sequence=seq,
            sequence_status=status,
            values=out,
        )

    def process_time_sync(self, device_id: str) -> None:
        """
        Time sync requests carry no sequence number but the device counts
        them; keep the tracker in step so the next datapoint is not a gap.
        """
        state = self._state_for(device_id)
        self._tracker.advance(state)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def _state_for(self, device_id: str) -> DeviceState:
        return self._store.get_or_create(
            device_id,
            sequence_increment=self._model.sequence_increment,
        )

    def _lookup(self, dp_id: Any) -> Optional[Datapoint]:
        try:
            return self._model.get_datapoint(int(dp_id))
        except (TypeError, ValueError):
            return None

    def _dispatch(
        self,
        state: DeviceState,
        dp: Datapoint,
        raw: float,
        options: MeterOptions,
        out: Dict[str, Any],
        timestamp: Optional[str],
    ) -> None:
        if dp.kind is FieldKind.COMBINED:
            # recomputed from the published channel powers instead
            return
        if dp.kind is FieldKind.PASSTHROUGH:
            out[dp.field_name] = dp.scale(raw)
            return

        x = dp.channel
        assert x is not None
        buf = state.channel(x)
        now = timestamp or self._clock()

        if dp.kind is FieldKind.POWER:
            self._on_power(state, x, buf, dp.scale(raw), options, out, now)
        elif dp.kind is FieldKind.CURRENT:
            self._on_current(state, x, buf, dp.scale(raw), options, out, now)
        elif dp.kind is FieldKind.POWER_FACTOR:
            self._on_power_factor(state, x, buf, dp.scale(raw), options, out)
        elif dp.kind is FieldKind.ENERGY_FLOW:
            self._on_energy_flow(state, x, buf, raw, options, out)

        if f"power_{x}" in out:
            recompute_combined(state, out, self._model.power_scale)

    # ------------------------------------------------------------------
    # Per-field handlers
    # ------------------------------------------------------------------
    def _on_power(self, state, x, buf: ChannelBuffer, value, options, out, now) -> None:
        buf.power = value
        buf.received_at = now

        if value == 0:
            self._flush_on_zero(state, x, buf, buf.zero_power_seen, options, out, now)
            buf.zero_power_seen = True
            return
        buf.zero_power_seen = False

        if options.trigger(x) is TriggerMode.IMMEDIATE:
            publish_immediate(x, buf, "power", value, out)

    def _on_current(self, state, x, buf: ChannelBuffer, value, options, out, now) -> None:
        buf.current = value

        if value == 0:
            self._flush_on_zero(state, x, buf, buf.zero_current_seen, options, out, now)
            buf.zero_current_seen = True
            return
        buf.zero_current_seen = False

        if options.trigger(x) is TriggerMode.IMMEDIATE:
            publish_immediate(x, buf, "current", value, out)

    def _on_power_factor(self, state, x, buf: ChannelBuffer, value, options, out) -> None:
        buf.power_factor = value

        trigger = options.trigger(x)
        if trigger is TriggerMode.IMMEDIATE:
            publish_immediate(x, buf, "power_factor", value, out)
        elif trigger is TriggerMode.POWER_FACTOR:
            self._flush(state, x, buf, options, out)

    def _on_energy_flow(self, state, x, buf: ChannelBuffer, code, options, out) -> None:
        direction = resolve_direction(code, reverse_code=self._model.reverse_code)
        if direction is Direction.UNKNOWN:
            self._log.debug("ENERGY_FLOW_UNKNOWN device=%s channel=%s code=%r", state.device_id, x, code)
        buf.sign = direction

        trigger = options.trigger(x)
        if trigger is TriggerMode.IMMEDIATE:
            publish_immediate(x, buf, "energy_flow", direction.label, out)
        elif trigger is TriggerMode.ENERGY_FLOW:
            self._flush(state, x, buf, options, out)

    def _flush_on_zero(self, state, x, buf, zero_seen: bool, options, out, now) -> None:
        if options.single_zero_suppression and not zero_seen:
            self._log.debug("ZERO_SUPPRESSED device=%s channel=%s", state.device_id, x)
            complete = flush_null(x, buf, options, out, now)
        else:
            complete = flush_zero(x, buf, options, out, now)
        self._log.debug("FLUSH device=%s channel=%s complete=%s zero=1", state.device_id, x, complete)

    def _flush(self, state, x, buf, options, out) -> None:
        complete = flush_channel(x, buf, options, out)
        self._log.debug("FLUSH device=%s channel=%s complete=%s", state.device_id, x, complete)
