# bimeter/runtime/sequence.py
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from bimeter.runtime.state import SEQUENCE_MODULUS, DeviceState


class SequenceStatus(str, Enum):
    FIRST = "first"          # no previous sequence: baseline
    IN_ORDER = "in_order"
    DUPLICATE = "duplicate"
    GAP = "gap"              # dropped or reordered message(s)


def expected_next(last_sequence: int, increment: int) -> int:
    return (last_sequence + increment) % SEQUENCE_MODULUS


def classify(last_sequence: Optional[int], seq: int, increment: int) -> SequenceStatus:
    if last_sequence is None:
        return SequenceStatus.FIRST
    if seq == last_sequence:
        return SequenceStatus.DUPLICATE
    if seq == expected_next(last_sequence, increment):
        return SequenceStatus.IN_ORDER
    return SequenceStatus.GAP


class SequenceTracker:
    """
    Follows the payload sequence counter of each device.

    Every observed message becomes the new reference, so a gap is always
    relative to the immediately preceding message.
    """

    def __init__(self, *, logger: Optional[logging.Logger] = None):
        self._log = logger or logging.getLogger(__name__)

    def observe(self, state: DeviceState, seq: int) -> SequenceStatus:
        seq = int(seq)
        status = classify(state.last_sequence, seq, state.sequence_increment)
        if status is SequenceStatus.GAP:
            assert state.last_sequence is not None
            self._log.debug(
                "SEQ_GAP device=%s got=%d expected=%d",
                state.device_id,
                seq,
                expected_next(state.last_sequence, state.sequence_increment),
            )
        state.last_sequence = seq
        return status

    def advance(self, state: DeviceState) -> None:
        """
        Account for a message that carries no sequence number but still
        consumes one counter step on the device (time sync requests).
        """
        if state.last_sequence is None:
            return
        state.last_sequence = expected_next(state.last_sequence, state.sequence_increment)
