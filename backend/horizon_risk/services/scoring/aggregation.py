"""
Aggregation and classification helpers shared by both engines.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TypeVar

T = TypeVar("T")

SCORE_MIN = 0.0
SCORE_MAX = 100.0


def clamp(value: float, low: float = SCORE_MIN, high: float = SCORE_MAX) -> float:
    """Clamp value to [low, high]."""
    return max(low, min(high, value))


def round_score(value: float) -> float:
    """Clamp to the score range and round to 2 decimal places."""
    return round(clamp(value), 2)


def weighted_sum(
    values: Mapping[str, float], weights: Mapping[str, float], baseline: float = 0.0
) -> float:
    """
    Combine named signals with fixed weights.

    Every weighted signal must be present in ``values``; a missing key is a
    programming error, not a neutral value.
    """
    total = baseline
    for name, weight in weights.items():
        total += values[name] * weight
    return total


def classify_by_bands(score: float, bands: Sequence[tuple[float, T]]) -> T:
    """
    Map a score to a label using lower-bound-inclusive bands.

    ``bands`` holds ``(lower_bound, label)`` pairs sorted ascending; the first
    lower bound must be the bottom of the score range so every score maps to a
    label.
    """
    if not bands:
        raise ValueError("At least one band is required")

    label = bands[0][1]
    for lower_bound, band_label in bands:
        if score >= lower_bound:
            label = band_label
        else:
            break
    return label


def mean(values: Sequence[float], default: float) -> float:
    """Arithmetic mean, or ``default`` for an empty sequence."""
    if not values:
        return default
    return sum(values) / len(values)
