"""Timeframe percentage model: timeframe minutes to TH percentage"""

import bisect
import math
from typing import Optional

# Nine anchor tiers, four times longer and twice the percentage each step
TIER_ANCHORS: tuple[tuple[str, int, float], ...] = (
    ("M1", 1, 0.02),
    ("M4", 4, 0.04),
    ("M16", 16, 0.08),
    ("H1+M4", 64, 0.16),
    ("H4+M16", 256, 0.32),
    ("H17+M4", 1024, 0.64),
    ("D2+H20+M16", 4096, 1.28),
    ("D11+H9+M4", 16384, 2.56),
    ("D45+H12+M16", 65536, 5.12),
)

TIER_PERCENTAGES: dict[str, float] = {label: pct for label, _, pct in TIER_ANCHORS}

FALLBACK_PERCENTAGE = 0.32

# Percentage at one minute; the anchors follow BASE_PERCENTAGE * sqrt(minutes)
BASE_PERCENTAGE = 0.02

_ANCHOR_MINUTES = [minutes for _, minutes, _ in TIER_ANCHORS]

# Minute-scale tier bounds: the smallest bound >= minutes picks the tier
_MINUTE_TIERS: tuple[tuple[float, str], ...] = (
    (1, "M1"),
    (5, "M4"),
    (30, "M16"),
    (60, "H1+M4"),
    (240, "H4+M16"),
)

MINUTES_PER_DAY = 1440
MINUTES_PER_WEEK = 10080
MINUTES_PER_MONTH = 43200


def timeframe_to_tier(minutes: float) -> str:
    """
    Map a timeframe to its tier label.

    Minute-scale timeframes take the smallest tier whose bound is >= minutes
    (1, 5, 30, 60, 240). Longer timeframes are placed by calendar scale:
    intraday, day, week, then month and beyond.

    Args:
        minutes: Timeframe length; non-positive values map to the first tier

    Returns:
        Tier label from TIER_ANCHORS
    """
    for bound, label in _MINUTE_TIERS:
        if minutes <= bound:
            return label

    if minutes < MINUTES_PER_DAY:
        return "H17+M4"
    if minutes < MINUTES_PER_WEEK:
        return "D2+H20+M16"
    if minutes < MINUTES_PER_MONTH:
        return "D11+H9+M4"
    return "D45+H12+M16"


def tier_percentage(label: Optional[str]) -> float:
    """Anchor percentage for a tier label, falling back to 0.32."""
    if label is None:
        return FALLBACK_PERCENTAGE
    return TIER_PERCENTAGES.get(label, FALLBACK_PERCENTAGE)


def percentage_from_minutes(minutes: float) -> float:
    """
    Percentage constant for a (possibly fractional) timeframe in minutes.

    Exact anchors return the table value. Between anchors the percentage is
    interpolated linearly in log(minutes). Outside the table the
    sqrt(minutes) law the anchors follow is extended.

    Args:
        minutes: Timeframe length; non-positive values are treated as 1

    Returns:
        Percentage, non-decreasing in minutes
    """
    if not minutes or minutes <= 0:
        minutes = 1.0

    index = bisect.bisect_left(_ANCHOR_MINUTES, minutes)

    if index < len(TIER_ANCHORS) and _ANCHOR_MINUTES[index] == minutes:
        return TIER_ANCHORS[index][2]

    if index == 0 or index >= len(TIER_ANCHORS):
        return BASE_PERCENTAGE * math.sqrt(minutes)

    _, lower_minutes, lower_pct = TIER_ANCHORS[index - 1]
    _, higher_minutes, higher_pct = TIER_ANCHORS[index]

    ratio = (math.log(minutes) - math.log(lower_minutes)) / (
        math.log(higher_minutes) - math.log(lower_minutes)
    )
    return lower_pct + ratio * (higher_pct - lower_pct)
