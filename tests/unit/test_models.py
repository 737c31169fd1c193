"""Unit tests for the data models."""

import math
from dataclasses import FrozenInstanceError

import pytest

from fractal_app.data.models import (
    Candidate,
    CandidateMap,
    MatchResult,
    decimal_precision,
)


class TestInstrument:
    """Test suite for instrument precision."""

    @pytest.mark.parametrize("tick_size,expected", [
        (0.0001, 4),
        (0.00001, 5),
        (0.25, 2),
        (1.0, 0),
        (5.0, 0),
        (0.0, 0),
        (-0.01, 0),
        (math.nan, 0),
    ])
    def test_decimal_precision(self, tick_size, expected) -> None:
        assert decimal_precision(tick_size) == expected

    def test_precision_property(self, tick_instrument) -> None:
        assert tick_instrument.precision == 4

    def test_frozen(self, tick_instrument) -> None:
        with pytest.raises(FrozenInstanceError):
            tick_instrument.tick_size = 0.01


class TestCandidateMap:
    """Test suite for candidate maps."""

    def test_from_mapping_parses_minutes(self) -> None:
        candidates = CandidateMap.from_mapping({"H4": 0.1, "6H52m": 0.2, "weird": 0.3})

        assert candidates["H4"].minutes == 240.0
        assert candidates["6H52m"].minutes == 412.0
        assert candidates["weird"].minutes is None
        assert not candidates["weird"].has_timeframe

    def test_from_minutes_labels(self) -> None:
        candidates = CandidateMap.from_minutes({90: 0.2, 60: 0.1})

        assert candidates.labels() == ["1H", "1H30m"]
        assert candidates["1H30m"].minutes == 90.0

    def test_duplicate_labels_rejected(self) -> None:
        with pytest.raises(ValueError):
            CandidateMap((Candidate("H1", 0.1, 60.0), Candidate("H1", 0.2, 60.0)))

    def test_empty(self) -> None:
        assert not CandidateMap()
        assert not CandidateMap.from_mapping(None)
        assert len(CandidateMap.from_mapping({})) == 0

    def test_missing_label(self, sample_candidates) -> None:
        with pytest.raises(KeyError):
            sample_candidates["H4"]

    def test_monotonic(self, sample_candidates) -> None:
        assert sample_candidates.is_monotonic()
        assert not CandidateMap.from_mapping({"M1": 0.002, "H1": 0.0002}).is_monotonic()


class TestMatchResult:
    """Test suite for match results."""

    def test_degenerate(self) -> None:
        result = MatchResult.degenerate()

        assert result.label == "-"
        assert result.matched_value_pips == 0.0
        assert math.isinf(result.residual_pips)
        assert result.is_degenerate

    def test_regular_result(self) -> None:
        assert not MatchResult("H1", 20.0, 0.0).is_degenerate
