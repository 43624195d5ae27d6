# bimeter/model/compute.py
from __future__ import annotations

from typing import Iterable, List


def scaled_sum(vals: Iterable[float], scale: int) -> float:
    """
    Sum decimal readings on their integer grid and divide back once.

    Readings produced by dividing raw integers (raw / 10) carry binary
    rounding noise; summing them directly gives 79.8 + -37.1 = 42.699999999999996.
    """
    if scale <= 0:
        raise ValueError("scale must be > 0")

    values: List[float] = [float(v) for v in vals]
    if not values:
        raise ValueError("scaled_sum requires at least one input")

    total = round(sum(scale * v for v in values))
    return total / scale
