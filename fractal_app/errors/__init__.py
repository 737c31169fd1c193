"""
Error classification for the step matching engine.

Matching itself reports degenerate results instead of raising; these
exceptions cover malformed inputs to strict helpers and broken numeric
preconditions.
"""

from .data_quality import DataQualityError, InvalidReferenceError, MalformedDataError
from .system_failures import MetricsCalculationError, SystemFailureError

__all__ = [
    "DataQualityError",
    "InvalidReferenceError",
    "MalformedDataError",
    "MetricsCalculationError",
    "SystemFailureError",
]
