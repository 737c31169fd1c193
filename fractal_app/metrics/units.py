"""Conversions between price units, pips and points (ticks)"""

from typing import Optional

from ..data.models import Instrument, decimal_precision

DEFAULT_PIP_MULTIPLIER = 10.0

# Pip multiplier by tick size decimal places, for forex-looking symbols
_FOREX_MULTIPLIERS = {0: 1.0, 1: 10.0, 2: 100.0}

# Pip multiplier by tick size decimal places, for everything else
_GENERIC_MULTIPLIERS = {0: 1.0, 1: 10.0, 2: 100.0, 3: 10.0, 4: 10.0, 5: 10.0}

# Conventional pip sizes: 0.1 for spot metals, 1.0 for crypto
METAL_PIP_MULTIPLIER = 10.0
CRYPTO_PIP_MULTIPLIER = 1.0

_METAL_PREFIXES = ("XAU", "XAG")
_METAL_NAMES = ("GOLD", "SILVER")
_CRYPTO_NAMES = ("BTC", "ETH", "SOL", "ADA", "DOGE", "XRP")


def _symbol_override(symbol: Optional[str]) -> Optional[float]:
    """Pip multiplier for metals and crypto, or None for other symbols."""
    sym = (symbol or "").upper()
    if sym.startswith(_METAL_PREFIXES) or any(name in sym for name in _METAL_NAMES):
        return METAL_PIP_MULTIPLIER
    if any(name in sym for name in _CRYPTO_NAMES):
        return CRYPTO_PIP_MULTIPLIER
    return None


def looks_like_forex(symbol: Optional[str]) -> bool:
    """
    Heuristic currency pair detection.

    A symbol looks like a pair when it contains a slash ("EUR/USD"), or has at
    least six characters and no period ("EURUSD", but not "US500.cash").
    """
    if not symbol:
        return False
    return "/" in symbol or (len(symbol) >= 6 and "." not in symbol)


def pip_multiplier(instrument: Optional[Instrument]) -> float:
    """
    Determine the pip multiplier for an instrument.

    Args:
        instrument: Instrument descriptor (may be None)

    Returns:
        Multiplier from price units to pips; 10.0 when the instrument is
        missing or its tick size is not positive
    """
    if instrument is None or instrument.tick_size is None or instrument.tick_size <= 0:
        return DEFAULT_PIP_MULTIPLIER

    override = _symbol_override(instrument.symbol)
    if override is not None:
        return override

    places = decimal_precision(instrument.tick_size)

    if looks_like_forex(instrument.symbol):
        # JPY pairs quote to two decimals
        if "JPY" in instrument.symbol.upper():
            return 100.0
        return _FOREX_MULTIPLIERS.get(places, DEFAULT_PIP_MULTIPLIER)

    return _GENERIC_MULTIPLIERS.get(places, DEFAULT_PIP_MULTIPLIER)


def _uses_tick_division(instrument: Optional[Instrument]) -> bool:
    return (
        instrument is not None
        and instrument.tick_size is not None
        and instrument.tick_size > 0
        and not looks_like_forex(instrument.symbol)
    )


def price_to_pip(price_delta: float, instrument: Optional[Instrument]) -> float:
    """
    Convert a price distance to pips.

    Forex-looking symbols scale by pip_multiplier(); other instruments divide
    by the tick size. Without usable instrument data the default multiplier
    applies.
    """
    if _uses_tick_division(instrument):
        return price_delta / instrument.tick_size
    return price_delta * pip_multiplier(instrument)


def pip_to_price(pips: float, instrument: Optional[Instrument]) -> float:
    """Inverse of price_to_pip()."""
    if _uses_tick_division(instrument):
        return pips * instrument.tick_size
    return pips / pip_multiplier(instrument)


def price_to_point(price_delta: float, instrument: Optional[Instrument]) -> float:
    """Convert a price distance to points (tick counts)."""
    if instrument is None or not instrument.tick_size:
        return 0.0
    return price_delta / instrument.tick_size


def point_to_price(points: float, instrument: Optional[Instrument]) -> float:
    """Convert points (tick counts) to a price distance."""
    if instrument is None:
        return 0.0
    return points * instrument.tick_size
