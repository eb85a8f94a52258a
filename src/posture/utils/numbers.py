"""Integer percentage helpers shared by every scorer."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up.

    ``round_half_up(2.5) == 3`` where the builtin ``round(2.5) == 2``.
    """
    return int(math.floor(value + 0.5))


def percentage(part: int, whole: int) -> int:
    """Return ``part / whole`` as an integer percentage in [0, 100].

    A zero (or negative) denominator yields 0.
    """
    if whole <= 0:
        return 0
    return max(0, min(100, round_half_up(part / whole * 100)))


def ratio(part: int, whole: int) -> float:
    """Return ``part / whole``, or 0.0 for an empty denominator."""
    if whole <= 0:
        return 0.0
    return part / whole
