"""
Errors for numeric failures inside the engine.

A refinement that produces NaN or infinity cannot be fixed by adjusting a
single input, so these are never recoverable.
"""

from typing import Any, Optional


class SystemFailureError(Exception):
    """Base class for unrecoverable calculation failures."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class MetricsCalculationError(SystemFailureError):
    """A candidate value function returned a non-finite number."""

    def __init__(self, message: str, metric_name: Optional[str] = None,
                 calculation_input: Optional[dict[str, Any]] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.metric_name = metric_name
        self.calculation_input = calculation_input
