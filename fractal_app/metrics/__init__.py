"""Unit conversion, percentage model, TH and ATR calculations"""

from .atr import ATRCalculator, build_atr3_map, calculate_atr, calculate_live_atr, estimate_atr
from .fractal import (
    build_m_map,
    calculate_fractal_values,
    calculate_long_step,
    calculate_short_step,
    calculate_th,
    calculate_th_points,
)
from .percentage import percentage_from_minutes, timeframe_to_tier
from .units import pip_multiplier, pip_to_price, price_to_pip

__all__ = [
    "ATRCalculator",
    "build_atr3_map",
    "build_m_map",
    "calculate_atr",
    "calculate_live_atr",
    "calculate_fractal_values",
    "calculate_long_step",
    "calculate_short_step",
    "calculate_th",
    "calculate_th_points",
    "estimate_atr",
    "percentage_from_minutes",
    "pip_multiplier",
    "pip_to_price",
    "price_to_pip",
    "timeframe_to_tier",
]
