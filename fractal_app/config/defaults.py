"""Default configuration parameters for the step matching engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MatchingParams:
    """M-step matching parameters."""
    refine_tolerance_pips: float = 0.1       # Refine only when best diff exceeds this
    convergence_pips: float = 0.01           # Stop bisection once this close to the leg
    max_iterations: int = 100                # Hard bound on bisection iterations
    min_span_minutes: float = 1.0            # Stop once the bracket is this narrow


@dataclass(frozen=True)
class ATRParams:
    """ATR matching and scaling parameters."""
    factor: float = 3.0                      # Leg is matched against factor x ATR
    period: int = 14                         # Bars for ATR from raw history
    min_minutes: float = 1.0                 # Scaled search domain lower bound
    max_minutes: float = 10080.0             # Scaled search domain upper bound (one week)
    tolerance_pips: float = 0.1              # Scaled search convergence
    max_iterations: int = 100


@dataclass(frozen=True)
class FractalParams:
    """TH and M-step parameters."""
    th_to_m_factor: float = 5.25             # M = factor x TH


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    matching: MatchingParams
    atr: ATRParams
    fractal: FractalParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        matching=MatchingParams(),
        atr=ATRParams(),
        fractal=FractalParams(),
    )
