from __future__ import annotations

from bimeter.runtime.resolver import Direction
from bimeter.runtime.state import ChannelBuffer, DeviceState


def test_take_reads_and_clears_pending_fields():
    buf = ChannelBuffer(sign=Direction.REVERSE, power=12.5, current=0.1, power_factor=80.0, received_at="t")
    buf.last_emitted_signed_power = -3.0

    assert buf.take() == (Direction.REVERSE, 12.5, 0.1, 80.0)
    assert buf.take() == (None, None, None, None)
    # not part of the pending set
    assert buf.received_at == "t"
    assert buf.last_emitted_signed_power == -3.0


def test_counter_wraps_at_16_bits():
    buf = ChannelBuffer(update_counter=65535)
    assert buf.next_counter() == 0
    assert buf.next_counter() == 1


def test_device_clear_pending_touches_both_channels():
    st = DeviceState("dev")
    st.channel("a").power = 1.0
    st.channel("a").zero_power_seen = True
    st.channel("b").current = 2.0
    st.channel("b").last_emitted_signed_power = 5.0

    st.clear_pending()

    for x in ("a", "b"):
        assert st.channel(x).take() == (None, None, None, None)
        assert st.channel(x).zero_power_seen is False
    assert st.channel("b").last_emitted_signed_power == 5.0


def test_device_state_survives_dict_conversion():
    st = DeviceState("dev", last_sequence=1024)
    st.channel("a").sign = Direction.REVERSE
    st.channel("a").power = 37.1
    st.channel("b").update_counter = 42

    back = DeviceState.from_dict(st.as_dict())

    assert back == st


def test_from_dict_ignores_unknown_channels():
    back = DeviceState.from_dict({"device_id": "dev", "channels": {"c": {"power": 1.0}}})
    assert set(back.channels) == {"a", "b"}
    assert back.last_sequence is None
