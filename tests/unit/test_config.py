"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from fractal_app.config.defaults import get_default_config
from fractal_app.config.loader import ConfigLoader
from fractal_app.config.validation import ConfigValidator


class TestDefaultConfig:
    """Test suite for default configuration."""

    def test_default_config_creation(self) -> None:
        """Test that default configuration can be created."""
        config = get_default_config()
        assert config.matching.refine_tolerance_pips == 0.1
        assert config.matching.convergence_pips == 0.01
        assert config.matching.max_iterations == 100
        assert config.atr.factor == 3.0
        assert config.atr.max_minutes == 10080.0
        assert config.fractal.th_to_m_factor == 5.25


class TestConfigLoader:
    """Test suite for configuration loader."""

    def test_config_loader_creation(self) -> None:
        """Test that ConfigLoader can be created."""
        loader = ConfigLoader.create()
        assert isinstance(loader.config_dir, Path)
        assert (loader.config_dir / "instruments.yaml").exists()

    def test_merge_config_defaults_only(self) -> None:
        """Test config merging with defaults only."""
        config = ConfigLoader.create().merge_config("UNKNOWN-INSTRUMENT")

        assert config["matching"]["refine_tolerance_pips"] == 0.1
        assert config["atr"]["period"] == 14

    def test_instrument_overrides(self) -> None:
        """Test instruments.yaml overrides defaults."""
        loader = ConfigLoader.create()

        assert loader.build_config("XAUUSD").matching.refine_tolerance_pips == 0.5
        assert loader.build_config("BTCUSD").atr.max_minutes == 43200.0
        assert loader.build_config("BTCUSD").atr.min_minutes == 1.0

    def test_call_overrides_win(self) -> None:
        """Test per-call overrides beat instrument overrides."""
        loader = ConfigLoader.create()
        config = loader.build_config("XAUUSD", {"matching": {"refine_tolerance_pips": 2.0}})

        assert config.matching.refine_tolerance_pips == 2.0
        assert config.matching.convergence_pips == 0.01

    def test_unknown_keys_ignored(self) -> None:
        config = ConfigLoader.create().build_config("TEST", {"atr": {"colour": "red"}, "extra": {}})
        assert config.atr.factor == 3.0

    def test_custom_config_dir(self, tmp_path) -> None:
        (tmp_path / "instruments.yaml").write_text(
            "instruments:\n  TEST:\n    fractal:\n      th_to_m_factor: 4.0\n"
        )
        loader = ConfigLoader.create(tmp_path)

        assert loader.build_config("TEST").fractal.th_to_m_factor == 4.0
        assert loader.build_config("OTHER").fractal.th_to_m_factor == 5.25

    def test_missing_config_file(self, tmp_path) -> None:
        loader = ConfigLoader.create(tmp_path)
        assert loader.load_instrument_config("TEST") == {}


class TestConfigValidator:
    """Test suite for configuration validation."""

    def test_defaults_are_valid(self) -> None:
        config = ConfigLoader.create().merge_config("TEST")
        assert ConfigValidator.validate_config(config) == []

    @pytest.mark.parametrize("params,field", [
        ({"refine_tolerance_pips": -0.1}, "refine_tolerance_pips"),
        ({"convergence_pips": "small"}, "convergence_pips"),
        ({"max_iterations": 0}, "max_iterations"),
        ({"max_iterations": 101}, "max_iterations"),
        ({"max_iterations": 10.5}, "max_iterations"),
        ({"min_span_minutes": 0}, "min_span_minutes"),
    ])
    def test_invalid_matching_params(self, params, field) -> None:
        errors = ConfigValidator.validate_matching_params(params)
        assert len(errors) == 1
        assert errors[0].field == field

    @pytest.mark.parametrize("params,field", [
        ({"factor": 0}, "factor"),
        ({"period": True}, "period"),
        ({"min_minutes": -1}, "min_minutes"),
        ({"min_minutes": 100, "max_minutes": 50}, "max_minutes"),
        ({"tolerance_pips": -1}, "tolerance_pips"),
        ({"max_iterations": 500}, "max_iterations"),
    ])
    def test_invalid_atr_params(self, params, field) -> None:
        errors = ConfigValidator.validate_atr_params(params)
        assert len(errors) == 1
        assert errors[0].field == field

    def test_invalid_fractal_params(self) -> None:
        errors = ConfigValidator.validate_fractal_params({"th_to_m_factor": -5.25})
        assert len(errors) == 1
        assert errors[0].value == -5.25

    def test_validate_config_collects_sections(self) -> None:
        errors = ConfigValidator.validate_config({
            "matching": {"max_iterations": 0},
            "atr": {"factor": -3},
            "fractal": {"th_to_m_factor": 0},
        })
        assert {err.field for err in errors} == {"max_iterations", "factor", "th_to_m_factor"}
