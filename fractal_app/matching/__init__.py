"""Leg matching against M-step and ATR candidates"""

from .matcher import (
    LegMatcher,
    match_atr,
    match_atr_candidates,
    match_atr_scaled,
    match_m,
)
from .search import (
    BisectionOutcome,
    DiscreteSelection,
    MatchPreference,
    SideRecord,
    bisect_minutes,
    select_discrete,
)

__all__ = [
    "BisectionOutcome",
    "DiscreteSelection",
    "LegMatcher",
    "MatchPreference",
    "SideRecord",
    "bisect_minutes",
    "match_atr",
    "match_atr_candidates",
    "match_atr_scaled",
    "match_m",
    "select_discrete",
]
