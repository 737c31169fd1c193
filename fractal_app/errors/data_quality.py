"""
Errors for caller-supplied values that cannot be used.

Strict helpers raise these: an unparseable timeframe label, an unregistered
instrument, a scaling reference with a zero base. The caller can correct the
input and retry, so every instance is recoverable.
"""

from typing import Any, Optional


class DataQualityError(Exception):
    """Base class for unusable inputs."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class MalformedDataError(DataQualityError):
    """A label, price or symbol is not in a usable form."""

    def __init__(self, message: str, raw_data: Optional[str] = None,
                 expected_format: Optional[str] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.raw_data = raw_data
        self.expected_format = expected_format


class InvalidReferenceError(DataQualityError):
    """ATR scaling inputs are not all positive."""

    def __init__(self, message: str, base_atr: Optional[float] = None,
                 base_minutes: Optional[float] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.base_atr = base_atr
        self.base_minutes = base_minutes
