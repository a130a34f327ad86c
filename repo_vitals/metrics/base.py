"""
Shared metric types and numeric helpers.
"""

import math
from typing import NamedTuple


class Metric(NamedTuple):
    """A single health sub-score."""

    name: str
    score: int
    max_score: int
    message: str
    risk: str  # "Critical", "High", "Medium", "Low", "None"


def calculate_median(values: list[float]) -> float | None:
    """
    Median of a list of numbers.

    Even-length input averages the two middle values. Returns None for an
    empty list.
    """
    if not values:
        return None

    ordered = sorted(values)
    middle = len(ordered) // 2

    if len(ordered) % 2 == 0:
        return (ordered[middle - 1] + ordered[middle]) / 2

    return ordered[middle]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 going up (not banker's rounding)."""
    return math.floor(value + 0.5)
