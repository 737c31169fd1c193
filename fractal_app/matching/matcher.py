"""
Leg matching operations.

Three matchers share the search skeleton in search.py:

- match_m: M steps (factor x TH), prefers the closest candidate above the
  leg and refines by bisection over timeframe minutes.
- match_atr_candidates: discrete 3xATR map, prefers the strictly closest
  candidate, no refinement.
- match_atr_scaled: bisection over [1, 10080] minutes using the
  square-root-of-time ATR scaling law. Preferred whenever instrument data and
  a reference ATR are available; match_atr picks between the two.

None of these raise for empty inputs; they return MatchResult.degenerate().
"""

from collections.abc import Mapping
from typing import Optional, Union

from structlog.types import FilteringBoundLogger

from ..config.defaults import DefaultConfig, get_default_config
from ..data.models import ATRReference, CandidateMap, Instrument, MatchResult, RulerReading
from ..logging.config import get_matching_logger, log_match_result, log_refinement
from ..metrics.atr import build_atr3_map, estimate_atr
from ..metrics.fractal import build_m_map, m_step_value
from ..metrics.units import price_to_pip
from ..utils.timeframes import format_compound_timeframe, format_exact_timeframe
from .search import MatchPreference, bisect_minutes, select_discrete

CandidateInput = Union[CandidateMap, Mapping[str, float], None]

M_DECIMALS = 1
ATR_DECIMALS = 2


def _as_candidate_map(candidates: CandidateInput) -> CandidateMap:
    if candidates is None:
        return CandidateMap()
    if isinstance(candidates, CandidateMap):
        return candidates
    return CandidateMap.from_mapping(candidates)


def match_m(
    leg_price: float,
    candidates: CandidateInput,
    instrument: Optional[Instrument],
    price: float,
    config: Optional[DefaultConfig] = None,
    logger: Optional[FilteringBoundLogger] = None,
) -> MatchResult:
    """
    Match a leg against M-step candidates.

    The closest candidate at or above the leg wins over any candidate below
    it. When that candidate is more than the refine tolerance away and the
    leg is bracketed, the bracket is bisected over timeframe minutes with M
    values recomputed from the percentage model at the given price.
    Refinement needs a tick size, so without an instrument the discrete pick
    is returned.

    Args:
        leg_price: Measured leg in price units
        candidates: M values in price units, keyed by timeframe
        instrument: Instrument descriptor (may be None)
        price: Base price for recomputing M during refinement
        config: Matching configuration (defaults if None)
        logger: Diagnostics sink

    Returns:
        MatchResult with pips rounded to one decimal
    """
    config = config or get_default_config()
    params = config.matching
    candidate_map = _as_candidate_map(candidates)

    def to_pips(value: float) -> float:
        return round(price_to_pip(value, instrument), M_DECIMALS)

    leg_pips = to_pips(abs(leg_price))
    selection = select_discrete(candidate_map, leg_pips, to_pips, MatchPreference.PREFER_ABOVE)

    if selection.best is None:
        result = MatchResult.degenerate()
        if logger is not None:
            log_match_result(logger, "m", leg_pips, result)
        return result

    best = selection.best

    if (instrument is not None
            and best.diff > params.refine_tolerance_pips
            and selection.bracketed
            and selection.below.minutes is not None
            and selection.above.minutes is not None
            and selection.above.minutes > selection.below.minutes > 0):

        def value_at(minutes: float) -> float:
            return to_pips(m_step_value(instrument, price, minutes, config.fractal.th_to_m_factor))

        outcome = bisect_minutes(
            value_at,
            leg_pips,
            selection.below,
            selection.above,
            label_for=format_compound_timeframe,
            convergence=params.convergence_pips,
            max_iterations=params.max_iterations,
            min_span=params.min_span_minutes,
        )
        best = outcome.best

        if logger is not None:
            log_refinement(logger, "m", outcome.iterations, outcome.low_minutes,
                           outcome.high_minutes, outcome.converged)

    result = MatchResult(
        label=best.label,
        matched_value_pips=round(best.pips, M_DECIMALS),
        residual_pips=round(best.diff, M_DECIMALS),
    )
    if logger is not None:
        log_match_result(logger, "m", leg_pips, result)
    return result


def match_atr_candidates(
    leg_price: float,
    candidates: CandidateInput,
    instrument: Optional[Instrument],
    config: Optional[DefaultConfig] = None,
    logger: Optional[FilteringBoundLogger] = None,
) -> MatchResult:
    """
    Match a leg against a discrete map of factor x ATR values.

    Candidate values are compared with the leg as given (tripled ATR); the
    reported value is divided back down to a single ATR. Whichever side is
    strictly closer wins.

    Returns:
        MatchResult with pips rounded to two decimals; residual_pips is the
        distance between the leg and the tripled value
    """
    config = config or get_default_config()
    factor = config.atr.factor
    candidate_map = _as_candidate_map(candidates)

    def to_pips(value: float) -> float:
        return round(price_to_pip(value, instrument), ATR_DECIMALS)

    leg_pips = to_pips(abs(leg_price))
    selection = select_discrete(candidate_map, leg_pips, to_pips, MatchPreference.PREFER_CLOSEST)

    if selection.best is None:
        result = MatchResult.degenerate()
    else:
        result = MatchResult(
            label=selection.best.label,
            matched_value_pips=round(selection.best.pips / factor, ATR_DECIMALS),
            residual_pips=round(selection.best.diff, ATR_DECIMALS),
        )

    if logger is not None:
        log_match_result(logger, "atr", leg_pips, result)
    return result


def match_atr_scaled(
    leg_price: float,
    instrument: Optional[Instrument],
    reference: Optional[ATRReference],
    config: Optional[DefaultConfig] = None,
    logger: Optional[FilteringBoundLogger] = None,
) -> MatchResult:
    """
    Find the timeframe whose scaled ATR times the factor equals the leg.

    The target ATR is leg / factor. Bisection runs over the configured
    minute domain (one minute to one week by default), estimating ATR at the
    midpoint from the reference with the square-root-of-time law, until the
    estimate is within tolerance of the target or the iteration bound is hit.

    Args:
        leg_price: Measured leg in price units
        instrument: Instrument descriptor
        reference: Known ATR at the structure timeframe
        config: Matching configuration (defaults if None)
        logger: Diagnostics sink

    Returns:
        MatchResult labelled with fractional minutes; the value is the single
        ATR in pips and residual_pips the distance between the leg and
        factor x ATR, both to two decimals
    """
    config = config or get_default_config()
    params = config.atr

    if instrument is None or reference is None or not reference.is_valid:
        result = MatchResult.degenerate()
        if logger is not None:
            log_match_result(logger, "atr_scaled", 0.0, result)
        return result

    leg_pips = round(price_to_pip(abs(leg_price), instrument), ATR_DECIMALS)
    target_pips = leg_pips / params.factor

    low, high = params.min_minutes, params.max_minutes
    mid = (low + high) / 2.0
    estimate_pips = 0.0
    iterations = 0
    converged = False

    while iterations < params.max_iterations:
        iterations += 1
        mid = (low + high) / 2.0
        estimate = estimate_atr(reference.atr_price, reference.minutes, mid)
        estimate_pips = price_to_pip(estimate, instrument)
        gap = estimate_pips - target_pips

        if abs(gap) <= params.tolerance_pips:
            converged = True
            break

        if gap > 0:
            high = mid
        else:
            low = mid

    if logger is not None:
        log_refinement(logger, "atr_scaled", iterations, low, high, converged)

    result = MatchResult(
        label=format_exact_timeframe(mid),
        matched_value_pips=round(estimate_pips, ATR_DECIMALS),
        residual_pips=round(abs(leg_pips - params.factor * estimate_pips), ATR_DECIMALS),
    )
    if logger is not None:
        log_match_result(logger, "atr_scaled", leg_pips, result, context={"minutes": mid})
    return result


def match_atr(
    leg_price: float,
    candidates: CandidateInput,
    instrument: Optional[Instrument] = None,
    reference: Optional[ATRReference] = None,
    config: Optional[DefaultConfig] = None,
    logger: Optional[FilteringBoundLogger] = None,
) -> MatchResult:
    """
    ATR match, preferring the scaled search over the candidate map.

    The scaled search runs when an instrument and a valid reference are
    supplied; otherwise the discrete candidate map is used.
    """
    if instrument is not None and reference is not None and reference.is_valid:
        return match_atr_scaled(leg_price, instrument, reference, config, logger)
    return match_atr_candidates(leg_price, candidates, instrument, config, logger)


class LegMatcher:
    """
    Matches legs for one instrument with a fixed configuration.

    The logger is the diagnostics sink for every match; pass one explicitly
    to route or capture events.
    """

    def __init__(
        self,
        instrument: Instrument,
        config: Optional[DefaultConfig] = None,
        logger: Optional[FilteringBoundLogger] = None,
    ) -> None:
        self.instrument = instrument
        self.config = config or get_default_config()
        self.logger = logger if logger is not None else get_matching_logger(__name__)

    def m_candidates(self, price: float) -> CandidateMap:
        """M steps over the fractal timeframes at a price."""
        return build_m_map(self.instrument, price, self.config.fractal.th_to_m_factor)

    def atr_candidates(self, reference: ATRReference) -> CandidateMap:
        """factor x ATR over the fractal timeframes, scaled from a reference."""
        if not reference.is_valid:
            return CandidateMap()
        return build_atr3_map(reference.minutes, reference.atr_price, self.config.atr.factor)

    def match_m(self, leg_price: float, price: float,
                candidates: CandidateInput = None) -> MatchResult:
        """M match; candidates default to the fractal M map at price."""
        if candidates is None:
            candidates = self.m_candidates(price)
        return match_m(leg_price, candidates, self.instrument, price, self.config, self.logger)

    def match_atr(self, leg_price: float, reference: Optional[ATRReference] = None,
                  candidates: CandidateInput = None) -> MatchResult:
        """ATR match; scaled when a reference is given, else over candidates."""
        return match_atr(leg_price, candidates, self.instrument, reference, self.config, self.logger)

    def measure(
        self,
        start_price: float,
        end_price: float,
        price: Optional[float] = None,
        reference: Optional[ATRReference] = None,
        m_candidates: CandidateInput = None,
        atr_candidates: CandidateInput = None,
    ) -> RulerReading:
        """
        Match the leg between two prices against both M steps and ATR.

        Args:
            start_price: Price where the leg starts
            end_price: Price where the leg ends
            price: Base price for TH (defaults to end_price)
            reference: Known ATR for the scaled search
            m_candidates: M map override (defaults to the fractal M map)
            atr_candidates: 3xATR map used when no reference is given

        Returns:
            RulerReading with the leg in pips and both matches
        """
        base_price = end_price if price is None else price
        leg_price = abs(end_price - start_price)

        return RulerReading(
            leg_pips=round(price_to_pip(leg_price, self.instrument), M_DECIMALS),
            m_match=self.match_m(leg_price, base_price, m_candidates),
            atr_match=self.match_atr(leg_price, reference, atr_candidates),
        )
