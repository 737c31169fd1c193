"""Unit tests for the step matching engine."""

import math
from unittest.mock import Mock, patch

import pytest

from fractal_app.engine import StepMatchingEngine
from fractal_app.errors import MetricsCalculationError


@pytest.fixture
def engine() -> StepMatchingEngine:
    """Engine with the TEST instrument registered."""
    engine = StepMatchingEngine()
    assert engine.add_instrument("TEST", 0.0001)
    return engine


class TestStepMatchingEngine:
    """Test suite for the StepMatchingEngine class."""

    def test_engine_initialization(self) -> None:
        """Test that the engine can be initialized."""
        engine = StepMatchingEngine()
        assert engine.instruments == {}
        assert engine.matchers == {}
        assert engine.atr_references == {}

    def test_engine_initialization_with_config_dir(self) -> None:
        """Test engine initialization with custom config directory."""
        with patch('fractal_app.engine.ConfigLoader') as mock_config_loader:
            mock_config_loader.create.return_value = Mock()
            StepMatchingEngine(config_dir="/custom/path")
            mock_config_loader.create.assert_called_once_with("/custom/path")

    def test_add_instrument(self, engine) -> None:
        assert engine.instruments["TEST"].precision == 4
        assert engine.configs["TEST"].matching.refine_tolerance_pips == 0.1

    def test_add_instrument_uses_yaml_overrides(self) -> None:
        engine = StepMatchingEngine()
        assert engine.add_instrument("XAUUSD", 0.01)
        assert engine.configs["XAUUSD"].matching.refine_tolerance_pips == 0.5

    @pytest.mark.parametrize("symbol,tick_size", [
        ("", 0.0001),
        ("TEST", 0.0),
        ("TEST", -0.01),
        ("TEST", math.nan),
        ("TEST", "0.0001"),
    ])
    def test_add_instrument_invalid(self, symbol, tick_size) -> None:
        engine = StepMatchingEngine()
        assert not engine.add_instrument(symbol, tick_size)
        assert engine.matchers == {}

    def test_add_instrument_invalid_overrides(self) -> None:
        engine = StepMatchingEngine()
        assert not engine.add_instrument("TEST", 0.0001, {"matching": {"max_iterations": 1000}})
        assert "TEST" not in engine.matchers

    def test_remove_instrument(self, engine) -> None:
        engine.set_atr_reference("TEST", 60.0, 0.001)
        engine.remove_instrument("TEST")

        assert "TEST" not in engine.matchers
        assert "TEST" not in engine.atr_references

    def test_measure_with_candidates(self, engine) -> None:
        reading = engine.measure(
            "TEST", 1.0, 1.002,
            m_candidates={"M1": 0.0002, "H1": 0.002, "D1": 0.02},
            atr_candidates={"M1": 0.0006, "H1": 0.006},
        )

        assert reading.leg_pips == 20.0
        assert reading.m_match.label == "H1"
        assert reading.m_match.residual_pips == 0.0
        assert reading.atr_match.label == "M1"

    def test_measure_without_atr_data(self, engine) -> None:
        reading = engine.measure("TEST", 1.0, 1.002, m_candidates={"H1": 0.002})

        assert reading.m_match.label == "H1"
        assert reading.atr_match.is_degenerate

    def test_measure_with_reference(self, engine) -> None:
        engine.set_atr_reference("TEST", 60.0, 0.001)
        reading = engine.measure("TEST", 1.0, 1.006)

        assert reading.atr_match.label.startswith(("3H5", "4H"))

    def test_measure_unknown_symbol(self, engine) -> None:
        assert engine.measure("UNKNOWN", 1.0, 1.002) is None

    def test_measure_non_finite_price(self, engine) -> None:
        assert engine.measure("TEST", 1.0, math.inf) is None

    def test_measure_calculation_failure(self, engine) -> None:
        with patch.object(engine.matchers["TEST"], 'measure',
                          side_effect=MetricsCalculationError("boom", metric_name="bisection")):
            assert engine.measure("TEST", 1.0, 1.002) is None

    def test_set_atr_reference_invalid(self, engine) -> None:
        assert engine.set_atr_reference("TEST", 60.0, 0.0) is None
        assert "TEST" not in engine.atr_references

    def test_update_atr(self, engine, sample_candles) -> None:
        reference = engine.update_atr("TEST", sample_candles, 1.0)

        assert reference is not None
        assert reference.atr_price == pytest.approx(0.001)
        assert engine.atr_references["TEST"] == reference

    def test_update_atr_insufficient_bars(self, engine, sample_candles) -> None:
        assert engine.update_atr("TEST", sample_candles[:5], 1.0) is None

    def test_calculation_table(self, engine) -> None:
        engine.set_atr_reference("TEST", 60.0, 0.001)
        table = engine.calculation_table("TEST", 64, 0.01)

        assert "Structure (S)" in table
        assert "Structure ATR" in table
