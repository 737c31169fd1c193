"""
Canonical data models for step matching.

This module defines immutable data structures for instruments, candidate
maps and match results. Prices are in price units; pips are produced by the
unit converter.
"""

import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from ..utils.timeframes import (
    format_compound_timeframe,
    is_valid_minutes,
    parse_compound_timeframe,
)

DEGENERATE_LABEL = "-"


def decimal_precision(tick_size: float) -> int:
    """
    Digits after the decimal point in the minimal decimal form of tick_size.

    0.0001 -> 4, 0.25 -> 2, 1.0 -> 0, 1e-05 -> 5. Non-positive or
    non-finite values give 0.
    """
    if tick_size is None or not math.isfinite(tick_size) or tick_size <= 0:
        return 0
    try:
        exponent = Decimal(repr(float(tick_size))).normalize().as_tuple().exponent
    except InvalidOperation:
        return 0
    return max(0, -int(exponent))


@dataclass(frozen=True)
class Instrument:
    """Read-only instrument descriptor supplied by the host platform."""
    symbol: str
    tick_size: float

    @property
    def precision(self) -> int:
        """Decimal places of the tick size."""
        return decimal_precision(self.tick_size)


@dataclass(frozen=True)
class Candle:
    """Normalized candlestick data with UTC timestamps."""
    ts: datetime        # UTC market timestamp
    open: float        # Opening price
    high: float        # High price
    low: float         # Low price
    close: float       # Closing price
    volume: float = 0.0


@dataclass(frozen=True)
class Candidate:
    """A labeled reference value at a known timeframe."""
    label: str
    value: float                     # Price units
    minutes: Optional[float] = None  # None when the timeframe is unknown

    @property
    def has_timeframe(self) -> bool:
        return is_valid_minutes(self.minutes)


class CandidateMap:
    """
    Ordered, immutable collection of candidates with unique labels.

    Values are expected to be non-decreasing with timeframe minutes; this is
    not enforced, see is_monotonic().
    """

    __slots__ = ("_candidates",)

    def __init__(self, candidates: tuple[Candidate, ...] = ()):
        seen = set()
        for candidate in candidates:
            if candidate.label in seen:
                raise ValueError(f"Duplicate candidate label: {candidate.label}")
            seen.add(candidate.label)
        self._candidates = tuple(candidates)

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, float]]) -> "CandidateMap":
        """Build from label -> price value, parsing each label into minutes."""
        if not values:
            return cls()

        candidates = []
        for label, value in values.items():
            minutes = parse_compound_timeframe(label)
            candidates.append(Candidate(
                label=label,
                value=float(value),
                minutes=float(minutes) if minutes > 0 else None,
            ))
        return cls(tuple(candidates))

    @classmethod
    def from_minutes(cls, values: Mapping[float, float]) -> "CandidateMap":
        """Build from minutes -> price value, labelling with the compound format."""
        candidates = []
        seen = set()
        for minutes in sorted(values):
            label = format_compound_timeframe(minutes)
            if label in seen:
                continue
            seen.add(label)
            candidates.append(Candidate(label=label, value=float(values[minutes]), minutes=float(minutes)))
        return cls(tuple(candidates))

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self._candidates)

    def __len__(self) -> int:
        return len(self._candidates)

    def __bool__(self) -> bool:
        return bool(self._candidates)

    def __getitem__(self, label: str) -> Candidate:
        for candidate in self._candidates:
            if candidate.label == label:
                return candidate
        raise KeyError(label)

    def __repr__(self) -> str:
        return f"CandidateMap({list(self._candidates)!r})"

    def labels(self) -> list[str]:
        return [candidate.label for candidate in self._candidates]

    def is_monotonic(self) -> bool:
        """True if values never decrease as timeframe minutes increase."""
        timed = sorted(
            (c for c in self._candidates if c.has_timeframe),
            key=lambda c: c.minutes,
        )
        return all(a.value <= b.value for a, b in zip(timed, timed[1:]))


@dataclass(frozen=True)
class MatchResult:
    """Outcome of one matching call."""
    label: str
    matched_value_pips: float
    residual_pips: float

    @classmethod
    def degenerate(cls) -> "MatchResult":
        """Result for an empty candidate set. The residual is meaningless."""
        return cls(label=DEGENERATE_LABEL, matched_value_pips=0.0, residual_pips=math.inf)

    @property
    def is_degenerate(self) -> bool:
        return self.label == DEGENERATE_LABEL


@dataclass(frozen=True)
class ATRReference:
    """Known ATR (price units, 1x) at a reference timeframe."""
    minutes: float
    atr_price: float

    @property
    def is_valid(self) -> bool:
        return is_valid_minutes(self.minutes) and math.isfinite(self.atr_price) and self.atr_price > 0


@dataclass(frozen=True)
class FractalValues:
    """Structure, Pattern and Trigger values of one TH base."""
    structure: float
    pattern: float
    trigger: float


@dataclass(frozen=True)
class THBundle:
    """TH values (price units) at five fractal levels around a timeframe."""
    th: float
    pattern: float
    trigger: float
    structure: float
    higher_pattern: float


@dataclass(frozen=True)
class RulerReading:
    """Both matches for one measured leg."""
    leg_pips: float
    m_match: MatchResult
    atr_match: MatchResult
