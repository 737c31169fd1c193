"""
Timeframe label utilities.

Timeframes are carried as minutes (real numbers, not restricted to whole
minutes). Labels are produced only for display, and parsed back only when a
caller hands over a label without its minutes.
"""

import math
import re
from typing import Optional

from ..errors import MalformedDataError

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * 60
MINUTES_PER_WEEK = 7 * MINUTES_PER_DAY
MINUTES_PER_MONTH = 30 * MINUTES_PER_DAY
MINUTES_PER_YEAR = 365 * MINUTES_PER_DAY

# Powers of two (every other one, so consecutive entries are 4x apart)
FRACTAL_MINUTES: dict[int, str] = {
    1: "M1",
    4: "M4",
    16: "M16",
    64: "H1+M4",
    256: "H4+M16",
    1024: "H17+M4",
    4096: "D2+H20+M16",
    16384: "D11+H9+M4",
    65536: "D45+H12+M16",
    262144: "D182+H1+M4",
    1048576: "D728+H4+M16",
    4194304: "D2912+H17+M4",
}

POWER3_MINUTES: dict[int, str] = {
    1: "M1",
    3: "M3",
    9: "M9",
    27: "M27",
    81: "H1+M21",
    243: "H4+M3",
    729: "H12+M9",
    2187: "D1+H12+M27",
    6561: "D4+H13+M21",
}

_TOKEN = re.compile(r"(\d+)([mMhHdDwWsS])|([mMhHdDwWsS])(\d+)")

_UNIT_MINUTES = {
    "M": 1,
    "H": MINUTES_PER_HOUR,
    "D": MINUTES_PER_DAY,
    "W": MINUTES_PER_WEEK,
}


def format_compound_timeframe(minutes: float) -> str:
    """
    Format minutes as a compound label.

    "{H}H{m}m" when both parts are present, "{H}H" for whole hours and
    "{m}m" below one hour. Minutes are rounded to the nearest whole minute.
    """
    total = int(round(minutes))
    hours, rem = divmod(total, MINUTES_PER_HOUR)
    if hours > 0:
        if rem > 0:
            return f"{hours}H{rem}m"
        return f"{hours}H"
    return f"{total}m"


def _trim(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return text or "0"


def format_exact_timeframe(minutes: float) -> str:
    """Format minutes like format_compound_timeframe, keeping two decimals of a minute."""
    total = round(minutes, 2)
    hours = int(total // MINUTES_PER_HOUR)
    rem = round(total - hours * MINUTES_PER_HOUR, 2)
    if hours > 0:
        if rem > 0:
            return f"{hours}H{_trim(rem)}m"
        return f"{hours}H"
    return f"{_trim(total)}m"


def format_duration(minutes: float) -> str:
    """
    Format minutes as a "Y M W D H m" display string, e.g. "2D 20H 16m".

    Years and months use 365 and 30 day approximations.
    """
    remaining = int(round(minutes))
    parts = []
    for size, suffix in (
        (MINUTES_PER_YEAR, "Y"),
        (MINUTES_PER_MONTH, "M"),
        (MINUTES_PER_WEEK, "W"),
        (MINUTES_PER_DAY, "D"),
        (MINUTES_PER_HOUR, "H"),
    ):
        count, remaining = divmod(remaining, size)
        if count > 0:
            parts.append(f"{count}{suffix}")

    if remaining > 0 or not parts:
        parts.append(f"{remaining}m")

    return " ".join(parts)


def parse_compound_timeframe(label: Optional[str]) -> int:
    """
    Parse a compound timeframe label into whole minutes.

    Accepts unit-first ("H4", "H1+M15", "D2+H20+M16") and number-first
    ("6H52m", "4H") tokens, seconds (rounded, at least one minute) and the
    special code "MN" (30 days).

    Returns:
        Total minutes, or -1 when nothing could be parsed
    """
    if not label:
        return -1
    if label.strip().upper() == "MN":
        return MINUTES_PER_MONTH

    minutes = 0
    for match in _TOKEN.finditer(label.replace("+", " ")):
        if match.group(1) is not None:
            value, unit = int(match.group(1)), match.group(2).upper()
        else:
            value, unit = int(match.group(4)), match.group(3).upper()

        if unit == "S":
            minutes += max(1, int(round(value / 60.0)))
        else:
            minutes += value * _UNIT_MINUTES[unit]

    return minutes if minutes > 0 else -1


def parse_timeframe_strict(label: str) -> int:
    """Parse a compound timeframe label, raising MalformedDataError on failure."""
    minutes = parse_compound_timeframe(label)
    if minutes <= 0:
        raise MalformedDataError(
            f"Cannot parse timeframe label: {label!r}",
            raw_data=label,
            expected_format="H4, H1+M15, 6H52m, MN"
        )
    return minutes


def pattern_minutes(minutes: float) -> float:
    """Timeframe one fractal level down (a quarter of the duration)."""
    return minutes / 4.0


def trigger_minutes(minutes: float) -> float:
    """Timeframe two fractal levels down (a sixteenth of the duration)."""
    return minutes / 16.0


def structure_minutes(minutes: float) -> float:
    """Structure timeframe: sixteen times the duration (two levels up)."""
    return minutes * 16.0


def nearest_fractal_timeframe(label: Optional[str]) -> str:
    """
    Nearest power-of-four fractal label to the given timeframe label.

    "M90" maps to "H1+M4" (64 minutes). Ties go to the longer timeframe.
    Returns "-" for labels that cannot be parsed.
    """
    minutes = parse_compound_timeframe(label)
    if minutes <= 0:
        return "-"

    best_key = min(FRACTAL_MINUTES, key=lambda key: (abs(key - minutes), -key))
    return FRACTAL_MINUTES[best_key]


def is_valid_minutes(minutes: Optional[float]) -> bool:
    """True for finite, positive minute values."""
    return minutes is not None and math.isfinite(minutes) and minutes > 0
