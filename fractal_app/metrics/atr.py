"""ATR (Average True Range) calculations and square-root-of-time scaling"""

import math
from collections.abc import Sequence
from typing import Optional

from ..data.models import ATRReference, Candidate, Candle, CandidateMap
from ..errors import InvalidReferenceError
from ..utils.timeframes import FRACTAL_MINUTES, POWER3_MINUTES, format_compound_timeframe

ATR_FACTOR = 3.0


def calculate_true_range(current: Candle, previous: Optional[Candle] = None) -> float:
    """
    Calculate True Range for a single candle

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))

    Args:
        current: Current candle
        previous: Previous candle (None for first candle)

    Returns:
        True Range value
    """
    if previous is None:
        # First candle case - use high-low range
        return current.high - current.low

    range_hl = current.high - current.low
    range_hc = abs(current.high - previous.close)
    range_lc = abs(current.low - previous.close)

    return max(range_hl, range_hc, range_lc)


def calculate_atr(candles: Sequence[Candle], period: int = 14) -> Optional[float]:
    """
    Calculate Average True Range using Simple Moving Average

    Args:
        candles: Candles in chronological order
        period: ATR period (default 14)

    Returns:
        ATR value or None if insufficient data
    """
    if len(candles) < period:
        return None

    true_ranges = []
    for i in range(len(candles)):
        previous = candles[i-1] if i > 0 else None
        true_ranges.append(calculate_true_range(candles[i], previous))

    recent_trs = true_ranges[-period:]
    return sum(recent_trs) / len(recent_trs)


def calculate_live_atr(candles: Sequence[Candle]) -> float:
    """
    True Range of the last (possibly still forming) candle

    With a single candle the open stands in for the previous close.
    """
    if not candles:
        return 0.0

    last = candles[-1]
    prev_close = candles[-2].close if len(candles) > 1 else last.open

    return max(last.high - last.low, abs(last.high - prev_close), abs(last.low - prev_close))


def estimate_atr(base_atr: float, base_minutes: float, target_minutes: float) -> float:
    """
    Estimate ATR at another timeframe from a known one

    ATR(target) = ATR(base) * sqrt(target_minutes / base_minutes)

    Args:
        base_atr: Known ATR at the reference timeframe
        base_minutes: Reference timeframe in minutes
        target_minutes: Timeframe to estimate for

    Returns:
        Estimated ATR

    Raises:
        InvalidReferenceError: if any input is not positive
    """
    if not base_atr > 0 or not base_minutes > 0:
        raise InvalidReferenceError(
            "ATR scaling needs a positive reference ATR and timeframe",
            base_atr=base_atr,
            base_minutes=base_minutes
        )
    if not target_minutes > 0:
        raise InvalidReferenceError(
            "ATR scaling needs a positive target timeframe",
            base_atr=base_atr,
            base_minutes=base_minutes,
            context={"target_minutes": target_minutes}
        )

    return base_atr * math.sqrt(target_minutes / base_minutes)


def build_atr3_map(structure_minutes: float, structure_atr: float,
                   factor: float = ATR_FACTOR) -> CandidateMap:
    """
    Candidate map of factor x ATR (price units) over the fractal timeframes

    The structure timeframe itself comes first, then the power-of-two and
    power-of-three minute tables. Values are scaled from the structure ATR.
    """
    labels = {structure_minutes: format_compound_timeframe(structure_minutes)}
    for table in (FRACTAL_MINUTES, POWER3_MINUTES):
        for minutes, label in table.items():
            if minutes not in labels and label not in labels.values():
                labels[minutes] = label

    candidates = [
        Candidate(
            label=labels[minutes],
            value=factor * estimate_atr(structure_atr, structure_minutes, minutes),
            minutes=float(minutes),
        )
        for minutes in sorted(labels)
    ]
    return CandidateMap(tuple(candidates))


class ATRCalculator:
    """ATR from bar history, packaged as a scaling reference"""

    def __init__(self, period: int = 14):
        self.period = period

    def calculate(self, candles: Sequence[Candle]) -> Optional[float]:
        """ATR over the configured period, or None if there are too few candles."""
        return calculate_atr(candles, self.period)

    def reference(self, candles: Sequence[Candle], minutes: float) -> Optional[ATRReference]:
        """
        Build an ATRReference for the timeframe the candles were sampled at

        Args:
            candles: Candles in chronological order
            minutes: Bar interval of the candles

        Returns:
            ATRReference, or None if ATR cannot be calculated
        """
        atr = self.calculate(candles)
        if atr is None:
            return None
        return ATRReference(minutes=minutes, atr_price=atr)
