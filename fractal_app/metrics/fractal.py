"""TH, Structure/Pattern/Trigger and Short/Long Step calculations"""

import math
from typing import Optional

from ..data.models import Candidate, CandidateMap, FractalValues, Instrument, THBundle
from ..utils.timeframes import (
    FRACTAL_MINUTES,
    POWER3_MINUTES,
    format_compound_timeframe,
    pattern_minutes,
    structure_minutes,
    trigger_minutes,
)
from .percentage import percentage_from_minutes
from .units import pip_multiplier, price_to_pip

# Price normalization by instrument digits: (multiply, divide)
_DIGIT_SCALE = {
    0: (1.0, 100.0),
    1: (1.0, 10.0),
    2: (1.0, 1.0),
    3: (1.0, 10.0),
    4: (100.0, 1.0),
    5: (100.0, 1.0),
    6: (1000.0, 1.0),
    7: (10000.0, 1.0),
    8: (10000.0, 1.0),
}


def calculate_th(price: float, digits: int, percentage: float) -> float:
    """
    Calculate the TH value for a price and timeframe percentage

    TH = (normalized_price * percentage) / 10

    Args:
        price: Base price
        digits: Instrument decimal places
        percentage: Timeframe percentage

    Returns:
        TH value, 0.0 for non-positive price or percentage
    """
    if price <= 0 or percentage <= 0:
        return 0.0

    multiply, divide = _DIGIT_SCALE.get(digits, (1.0, 1.0))
    normalized = price * multiply / divide

    return (normalized * percentage) / 10.0


def calculate_th_points(instrument: Instrument, price: float, percentage: float) -> float:
    """
    TH step expressed in points (tick counts)

    Args:
        instrument: Instrument descriptor
        price: Base price
        percentage: Timeframe percentage

    Returns:
        Step in points, 0.0 when tick size or TH is not positive
    """
    tick_size = instrument.tick_size
    if tick_size is None or tick_size <= 0:
        return 0.0

    th_value = calculate_th(price, instrument.precision, percentage)
    if th_value <= 0:
        return 0.0

    return (th_value / 10.0) / tick_size


def th_price(instrument: Instrument, price: float, minutes: float) -> float:
    """TH step in price units for a timeframe."""
    points = calculate_th_points(instrument, price, percentage_from_minutes(minutes))
    if points <= 0:
        return 0.0
    return points * instrument.tick_size


def m_step_value(instrument: Instrument, price: float, minutes: float,
                 th_to_m_factor: float) -> float:
    """M step (factor x TH) in price units for a timeframe."""
    return th_to_m_factor * th_price(instrument, price, minutes)


def calculate_fractal_values(th_value: float) -> FractalValues:
    """Structure is the TH itself; Pattern and Trigger are one and two halvings down."""
    structure = th_value
    pattern = structure / 2.0
    trigger = pattern / 2.0
    return FractalValues(structure=structure, pattern=pattern, trigger=trigger)


def calculate_short_step(structure: float, pattern: float) -> float:
    """SS = (2 * S) - P"""
    return (2 * structure) - pattern


def calculate_long_step(structure: float, pattern: float) -> float:
    """LS = (3 * S) - (2 * P)"""
    return (3 * structure) - (2 * pattern)


def calculate_control(short_step: float, long_step: float) -> float:
    """C = (SS + LS) / 2 / 7"""
    return (short_step + long_step) / 2.0 / 7.0


def pattern_atr(structure_atr: float) -> float:
    """ATR one fractal level down: 4x shorter duration, sqrt(4) smaller amplitude."""
    return structure_atr / math.sqrt(4.0)


def trigger_atr(structure_atr: float) -> float:
    """ATR two fractal levels down."""
    return structure_atr / math.sqrt(16.0)


def calculate_th_bundle(instrument: Instrument, minutes: float, price: float) -> THBundle:
    """TH values around a timeframe: current, pattern, trigger, structure and higher pattern."""
    structure = structure_minutes(minutes)
    return THBundle(
        th=th_price(instrument, price, minutes),
        pattern=th_price(instrument, price, pattern_minutes(minutes)),
        trigger=th_price(instrument, price, trigger_minutes(minutes)),
        structure=th_price(instrument, price, structure),
        higher_pattern=th_price(instrument, price, pattern_minutes(structure)),
    )


def build_m_map(instrument: Instrument, price: float, th_to_m_factor: float) -> CandidateMap:
    """
    Candidate map of M steps (price units) over the fractal timeframes

    Covers both the power-of-two and power-of-three minute tables. Labels keep
    their table form ("H1+M4"); minutes are carried on each candidate.
    """
    labels = dict(POWER3_MINUTES)
    labels.update(FRACTAL_MINUTES)

    candidates = []
    for minutes in sorted(labels):
        value = m_step_value(instrument, price, minutes, th_to_m_factor)
        if value > 0:
            candidates.append(Candidate(label=labels[minutes], value=value, minutes=float(minutes)))

    return CandidateMap(tuple(candidates))


def format_calculation_table(instrument: Instrument, minutes: float, price: float,
                             atr_value: Optional[float] = None) -> str:
    """
    Diagnostic table of TH-derived values in price units and pips

    Args:
        instrument: Instrument descriptor
        minutes: Current (structure) timeframe in minutes
        price: Base price
        atr_value: ATR of the current timeframe in price units, if known

    Returns:
        Multi-line text table
    """
    th = th_price(instrument, price, minutes)
    levels = calculate_fractal_values(th)
    short_step = calculate_short_step(levels.structure, levels.pattern)
    long_step = calculate_long_step(levels.structure, levels.pattern)
    control = calculate_control(short_step, long_step)

    rows = [
        ("Structure (S)", format_compound_timeframe(minutes), levels.structure),
        ("Pattern (P)", format_compound_timeframe(pattern_minutes(minutes)), levels.pattern),
        ("Trigger (T)", format_compound_timeframe(trigger_minutes(minutes)), levels.trigger),
        ("Short Step", "-", short_step),
        ("Long Step", "-", long_step),
        ("Control (C)", "-", control),
    ]
    if atr_value is not None:
        rows.extend([
            ("Structure ATR", format_compound_timeframe(minutes), atr_value),
            ("Pattern ATR", format_compound_timeframe(pattern_minutes(minutes)), pattern_atr(atr_value)),
            ("Trigger ATR", format_compound_timeframe(trigger_minutes(minutes)), trigger_atr(atr_value)),
        ])

    lines = [
        f"Base Price: {price:.5f} | Tick: {instrument.tick_size} | "
        f"Pip Multiplier: {pip_multiplier(instrument):.1f} | "
        f"Percentage: {percentage_from_minutes(minutes):.4f}",
        f"{'Type':<14} | {'Timeframe':<10} | {'Value':>14} | {'Pips':>10}",
    ]
    for name, timeframe, value in rows:
        lines.append(
            f"{name:<14} | {timeframe:<10} | {value:>14.5f} | {price_to_pip(value, instrument):>10.1f}"
        )

    return "\n".join(lines)
