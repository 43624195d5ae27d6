# bimeter/runtime/resolver.py
from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from bimeter.runtime.options import PowerMode

SIGN_LABEL = "sign"


class Direction(Enum):
    """Energy flow of one channel. value is the arithmetic sign."""
    FORWARD = 1
    REVERSE = -1
    UNKNOWN = 0

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    Direction.FORWARD: "consuming",
    Direction.REVERSE: "producing",
    Direction.UNKNOWN: "unknown",
}


def resolve_direction(code: float, *, reverse_code: int = 1) -> Direction:
    """
    Map a raw energy flow code to a Direction.

    reverse_code is a per-model calibration: the primary firmware uses 1 for
    "producing", an alternate decoding uses 0. Anything outside {0, 1} is
    UNKNOWN.
    """
    if code == reverse_code:
        return Direction.REVERSE
    if code == 1 - reverse_code:
        return Direction.FORWARD
    return Direction.UNKNOWN


def resolve_power(direction: Direction, power: float, mode: PowerMode) -> Tuple[float, str]:
    """
    Returns (published power, energy_flow label).

    An UNKNOWN direction always publishes the magnitude with label "unknown".
    """
    if direction is Direction.UNKNOWN:
        return power, direction.label
    if mode is PowerMode.SIGNED:
        return power * direction.value, SIGN_LABEL
    return power, direction.label


def signed_value(power: Optional[float], label: Optional[str]) -> Optional[float]:
    """Recover the signed power from a published (power, label) pair."""
    if power is None or label is None:
        return None
    if label in (SIGN_LABEL, _LABELS[Direction.FORWARD]):
        return power
    if label == _LABELS[Direction.REVERSE]:
        return -power
    return None
