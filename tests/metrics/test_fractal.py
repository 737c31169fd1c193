"""Tests for TH, Structure/Pattern/Trigger and step calculations"""

import pytest

from fractal_app.data.models import Instrument
from fractal_app.metrics.fractal import (
    build_m_map,
    calculate_control,
    calculate_fractal_values,
    calculate_long_step,
    calculate_short_step,
    calculate_th,
    calculate_th_bundle,
    calculate_th_points,
    format_calculation_table,
    m_step_value,
    pattern_atr,
    th_price,
    trigger_atr,
)


class TestTH:
    """Test TH normalization and scaling"""

    @pytest.mark.parametrize("digits,price,expected", [
        (0, 5000.0, 5000.0 / 100 * 0.16 / 10),
        (1, 500.0, 500.0 / 10 * 0.16 / 10),
        (2, 150.0, 150.0 * 0.16 / 10),
        (3, 150.0, 150.0 / 10 * 0.16 / 10),
        (4, 1.2345, 1.2345 * 100 * 0.16 / 10),
        (5, 1.2345, 1.2345 * 100 * 0.16 / 10),
        (6, 0.5, 0.5 * 1000 * 0.16 / 10),
        (7, 0.05, 0.05 * 10000 * 0.16 / 10),
        (8, 0.05, 0.05 * 10000 * 0.16 / 10),
    ])
    def test_digit_table(self, digits, price, expected):
        assert calculate_th(price, digits, 0.16) == pytest.approx(expected)

    def test_degenerate_inputs(self):
        """Test non-positive price or percentage yields zero"""
        assert calculate_th(0.0, 4, 0.16) == 0.0
        assert calculate_th(-1.0, 4, 0.16) == 0.0
        assert calculate_th(1.0, 4, 0.0) == 0.0

    def test_th_points(self, tick_instrument):
        # (1.0 * 100 * 0.16 / 10) / 10 / 0.0001
        assert calculate_th_points(tick_instrument, 1.0, 0.16) == pytest.approx(1600.0)

    def test_th_points_zero_tick(self):
        assert calculate_th_points(Instrument("TEST", 0.0), 1.0, 0.16) == 0.0
        assert th_price(Instrument("TEST", 0.0), 1.0, 64) == 0.0

    def test_m_step_value(self, tick_instrument):
        """Test M is the factor times TH in price units"""
        assert th_price(tick_instrument, 0.01, 64) == pytest.approx(0.0016)
        assert m_step_value(tick_instrument, 0.01, 64, 5.25) == pytest.approx(0.0084)


class TestFractalValues:
    """Test S/P/T and the step identities"""

    def test_halvings(self):
        values = calculate_fractal_values(8.0)
        assert values.structure == 8.0
        assert values.pattern == 4.0
        assert values.trigger == 2.0

    @pytest.mark.parametrize("th", [0.0016, 1.0, 37.5, 1234.5])
    def test_step_identities(self, th):
        """Test SS = 1.5 S and LS = 2 S when P = S / 2"""
        values = calculate_fractal_values(th)
        short_step = calculate_short_step(values.structure, values.pattern)
        long_step = calculate_long_step(values.structure, values.pattern)

        assert short_step == pytest.approx(1.5 * th)
        assert long_step == pytest.approx(2.0 * th)

    def test_control(self):
        assert calculate_control(12.0, 16.0) == pytest.approx(2.0)

    def test_atr_levels(self):
        assert pattern_atr(8.0) == pytest.approx(4.0)
        assert trigger_atr(8.0) == pytest.approx(2.0)


class TestTHBundle:
    """Test TH values around a timeframe"""

    def test_bundle_levels(self, tick_instrument):
        bundle = calculate_th_bundle(tick_instrument, 64, 0.01)

        assert bundle.th == pytest.approx(0.0016)
        assert bundle.pattern == pytest.approx(0.0008)
        assert bundle.trigger == pytest.approx(0.0004)
        assert bundle.structure == pytest.approx(0.0064)
        assert bundle.higher_pattern == pytest.approx(0.0032)


class TestMMap:
    """Test the M candidate map"""

    def test_map_contents(self, tick_instrument):
        m_map = build_m_map(tick_instrument, 0.01, 5.25)

        assert "M1" in m_map.labels()
        assert "M27" in m_map.labels()
        assert m_map["H1+M4"].minutes == 64.0
        assert m_map["H1+M4"].value == pytest.approx(0.0084)
        assert all(candidate.value > 0 for candidate in m_map)

    def test_map_is_monotonic(self, tick_instrument):
        assert build_m_map(tick_instrument, 0.01, 5.25).is_monotonic()

    def test_map_empty_for_zero_price(self, tick_instrument):
        assert len(build_m_map(tick_instrument, 0.0, 5.25)) == 0


class TestCalculationTable:
    """Test the diagnostic table"""

    def test_rows(self, tick_instrument):
        table = format_calculation_table(tick_instrument, 64, 0.01)

        assert "Structure (S)" in table
        assert "Short Step" in table
        assert "Control (C)" in table
        assert "Pattern ATR" not in table

    def test_atr_rows(self, tick_instrument):
        table = format_calculation_table(tick_instrument, 64, 0.01, atr_value=0.001)

        assert "Structure ATR" in table
        assert "Trigger ATR" in table
