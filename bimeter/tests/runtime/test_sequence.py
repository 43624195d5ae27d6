from __future__ import annotations

import pytest

from bimeter.runtime.sequence import SequenceStatus, SequenceTracker, classify, expected_next
from bimeter.runtime.state import DeviceState


def test_first_message_is_a_baseline_not_a_gap():
    assert classify(None, 4096, 256) is SequenceStatus.FIRST


@pytest.mark.parametrize(
    "last,seq,status",
    [
        (0, 256, SequenceStatus.IN_ORDER),
        (512, 512, SequenceStatus.DUPLICATE),
        (0, 512, SequenceStatus.GAP),
        (512, 256, SequenceStatus.GAP),
        (0xFF00, 0, SequenceStatus.IN_ORDER),
    ],
)
def test_classify(last, seq, status):
    assert classify(last, seq, 256) is status


def test_expected_next_wraps_at_16_bits():
    assert expected_next(0xFF00, 256) == 0
    assert expected_next(0xFFFF, 1) == 0


def test_observe_always_moves_the_reference():
    tracker = SequenceTracker()
    st = DeviceState("dev")

    assert tracker.observe(st, 0) is SequenceStatus.FIRST
    assert tracker.observe(st, 1024) is SequenceStatus.GAP
    assert st.last_sequence == 1024
    # next one is relative to the gap message, not to the old baseline
    assert tracker.observe(st, 1280) is SequenceStatus.IN_ORDER


def test_advance_steps_one_increment():
    tracker = SequenceTracker()
    st = DeviceState("dev")

    tracker.advance(st)
    assert st.last_sequence is None

    tracker.observe(st, 0xFF00)
    tracker.advance(st)
    assert st.last_sequence == 0
    assert tracker.observe(st, 256) is SequenceStatus.IN_ORDER


def test_increment_comes_from_the_device_state():
    tracker = SequenceTracker()
    st = DeviceState("dev", sequence_increment=1)
    tracker.observe(st, 7)
    assert tracker.observe(st, 8) is SequenceStatus.IN_ORDER
