"""Pytest configuration and shared fixtures."""

import pytest
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from fractal_app.config.defaults import DefaultConfig, MatchingParams, get_default_config
from fractal_app.data.models import ATRReference, Candle, CandidateMap, Instrument


@pytest.fixture
def tick_instrument() -> Instrument:
    """Non-forex instrument whose pips are price / 0.0001."""
    return Instrument(symbol="TEST", tick_size=0.0001)


@pytest.fixture
def forex_instrument() -> Instrument:
    """Five-digit currency pair."""
    return Instrument(symbol="EURUSD", tick_size=0.00001)


@pytest.fixture
def jpy_instrument() -> Instrument:
    """Three-digit yen pair."""
    return Instrument(symbol="USDJPY", tick_size=0.001)


@pytest.fixture
def sample_candidates() -> CandidateMap:
    """M1, H1 and D1 candidates worth 2, 20 and 200 pips at a 0.0001 tick."""
    return CandidateMap.from_mapping({"M1": 0.0002, "H1": 0.002, "D1": 0.02})


@pytest.fixture
def no_refine_config() -> DefaultConfig:
    """Default configuration with refinement effectively disabled."""
    return replace(get_default_config(), matching=MatchingParams(refine_tolerance_pips=1000.0))


@pytest.fixture
def hourly_reference() -> ATRReference:
    """ATR of 10 pips (at a 0.0001 tick) on the one hour timeframe."""
    return ATRReference(minutes=60.0, atr_price=0.001)


@pytest.fixture
def sample_candles() -> list[Candle]:
    """Twenty one-minute candles with a constant 0.0010 range."""
    start = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    return [
        Candle(
            ts=start + timedelta(minutes=i),
            open=1.1000,
            high=1.1005,
            low=1.0995,
            close=1.1000,
            volume=100.0,
        )
        for i in range(20)
    ]
