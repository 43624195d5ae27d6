from __future__ import annotations

import pytest

from bimeter.runtime.options import PowerMode
from bimeter.runtime.resolver import (
    SIGN_LABEL,
    Direction,
    resolve_direction,
    resolve_power,
    signed_value,
)


@pytest.mark.parametrize(
    "code,reverse_code,expected",
    [
        (0, 1, Direction.FORWARD),
        (1, 1, Direction.REVERSE),
        (1, 0, Direction.FORWARD),
        (0, 0, Direction.REVERSE),
        (2, 1, Direction.UNKNOWN),
        (-1, 0, Direction.UNKNOWN),
    ],
)
def test_resolve_direction(code, reverse_code, expected):
    assert resolve_direction(code, reverse_code=reverse_code) is expected


def test_unsigned_publishes_magnitude_with_label():
    assert resolve_power(Direction.FORWARD, 15.0, PowerMode.UNSIGNED) == (15.0, "consuming")
    assert resolve_power(Direction.REVERSE, 15.0, PowerMode.UNSIGNED) == (15.0, "producing")


def test_signed_carries_sign_in_value():
    assert resolve_power(Direction.FORWARD, 15.0, PowerMode.SIGNED) == (15.0, SIGN_LABEL)
    assert resolve_power(Direction.REVERSE, 15.0, PowerMode.SIGNED) == (-15.0, SIGN_LABEL)


def test_unknown_direction_is_never_signed():
    assert resolve_power(Direction.UNKNOWN, 15.0, PowerMode.SIGNED) == (15.0, "unknown")


def test_signed_value_recovers_sign_from_published_pair():
    assert signed_value(15.0, "consuming") == 15.0
    assert signed_value(15.0, "producing") == -15.0
    assert signed_value(-15.0, SIGN_LABEL) == -15.0
    assert signed_value(15.0, "unknown") is None
    assert signed_value(None, "consuming") is None
    assert signed_value(15.0, None) is None
