"""
Discrete nearest-match selection and continuous bisection over timeframe minutes.

Both matchers share this skeleton. They differ in how a candidate's pips are
computed and in which side wins when candidates exist above and below the
leg (see MatchPreference).
"""

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..data.models import Candidate
from ..errors import MetricsCalculationError


class MatchPreference(str, Enum):
    """How the discrete phase chooses between the best above and best below."""
    PREFER_ABOVE = "prefer_above"        # Round up to the next tier when one exists
    PREFER_CLOSEST = "prefer_closest"    # Strictly smaller difference wins


@dataclass(frozen=True)
class SideRecord:
    """Best candidate found on one side of the leg."""
    label: str
    pips: float
    diff: float                          # Non-negative distance to the leg
    minutes: Optional[float] = None


@dataclass(frozen=True)
class DiscreteSelection:
    """Outcome of the discrete phase."""
    above: Optional[SideRecord]
    below: Optional[SideRecord]
    best: Optional[SideRecord]

    @property
    def bracketed(self) -> bool:
        """True when candidates exist on both sides of the leg."""
        return self.above is not None and self.below is not None


@dataclass(frozen=True)
class BisectionOutcome:
    """Outcome of the continuous refinement phase."""
    above: SideRecord
    below: SideRecord
    iterations: int
    converged: bool
    low_minutes: float
    high_minutes: float

    @property
    def best(self) -> SideRecord:
        """Closer of the refined records; ties go to below."""
        if self.above.diff < self.below.diff:
            return self.above
        return self.below


def select_discrete(
    candidates: Iterable[Candidate],
    leg_pips: float,
    to_pips: Callable[[float], float],
    preference: MatchPreference,
) -> DiscreteSelection:
    """
    Find the closest candidates at-or-above and strictly below the leg.

    Args:
        candidates: Candidates with values in price units
        leg_pips: Measured leg in pips
        to_pips: Converts a candidate value to (rounded) pips
        preference: Rule for choosing between the two sides

    Returns:
        DiscreteSelection; best is None when no candidate has a positive value
    """
    above: Optional[SideRecord] = None
    below: Optional[SideRecord] = None

    for candidate in candidates:
        if candidate.value <= 0:
            continue

        pips = to_pips(candidate.value)
        if pips >= leg_pips:
            diff = pips - leg_pips
            if above is None or diff < above.diff:
                above = SideRecord(candidate.label, pips, diff, candidate.minutes)
        else:
            diff = leg_pips - pips
            if below is None or diff < below.diff:
                below = SideRecord(candidate.label, pips, diff, candidate.minutes)

    if preference is MatchPreference.PREFER_ABOVE:
        best = above if above is not None else below
    elif above is not None and below is not None:
        best = below if below.diff < above.diff else above
    else:
        best = above if above is not None else below

    return DiscreteSelection(above=above, below=below, best=best)


def bisect_minutes(
    value_at: Callable[[float], float],
    leg_pips: float,
    below: SideRecord,
    above: SideRecord,
    label_for: Callable[[float], str],
    convergence: float = 0.01,
    max_iterations: int = 100,
    min_span: float = 1.0,
) -> BisectionOutcome:
    """
    Bisect the timeframe bracket [below.minutes, above.minutes].

    The candidate function is evaluated at the midpoint; a value at or above
    the leg tightens the upper bound, anything else the lower bound. Stops
    when the bracket is no wider than min_span, when a midpoint lands within
    convergence of the leg, or after max_iterations.

    Args:
        value_at: Candidate pips for a timeframe in minutes
        leg_pips: Measured leg in pips
        below: Best discrete candidate below the leg (minutes required)
        above: Best discrete candidate at or above the leg (minutes required)
        label_for: Formats refined minutes as a label
        convergence: Gap to the leg that ends the search
        max_iterations: Hard iteration bound
        min_span: Bracket width that ends the search

    Raises:
        MetricsCalculationError: if value_at returns a non-finite number
    """
    low, high = below.minutes, above.minutes
    iterations = 0
    converged = False

    while high - low > min_span and iterations < max_iterations:
        iterations += 1
        mid = (low + high) / 2.0
        pips = value_at(mid)

        if not math.isfinite(pips):
            raise MetricsCalculationError(
                "Candidate value is not finite",
                metric_name="bisection",
                calculation_input={"minutes": mid, "leg_pips": leg_pips}
            )

        if pips >= leg_pips:
            high = mid
            above = SideRecord(label_for(mid), pips, pips - leg_pips, mid)
        else:
            low = mid
            below = SideRecord(label_for(mid), pips, leg_pips - pips, mid)

        if abs(pips - leg_pips) <= convergence:
            converged = True
            break

    return BisectionOutcome(
        above=above,
        below=below,
        iterations=iterations,
        converged=converged,
        low_minutes=low,
        high_minutes=high,
    )
