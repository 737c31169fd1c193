"""
Step matching engine coordinator.

Holds per-instrument configuration, matchers and ATR references, and runs
leg measurements against them. Configuration follows the 3-tier precedence
of ConfigLoader: defaults, then config/instruments.yaml, then call overrides.
"""

import math
from collections.abc import Mapping, Sequence
from typing import Any, Optional

import structlog

from .config.defaults import DefaultConfig
from .config.loader import ConfigLoader
from .config.validation import ConfigValidator
from .data.models import ATRReference, Candle, CandidateMap, Instrument, RulerReading
from .errors import (
    DataQualityError,
    InvalidReferenceError,
    MalformedDataError,
    SystemFailureError,
)
from .logging.config import get_matching_logger
from .matching.matcher import LegMatcher
from .metrics.atr import ATRCalculator, estimate_atr
from .metrics.fractal import format_calculation_table

logger = structlog.get_logger(__name__)
matching_logger = get_matching_logger(__name__)


class StepMatchingEngine:
    """
    Main coordinator for leg measurement.

    Manages, per instrument symbol:
    Config → LegMatcher → ATR reference → RulerReading
    """

    def __init__(self, config_dir: Optional[str] = None) -> None:
        """Initialize the step matching engine."""
        self.logger = logger
        self.matching_logger = matching_logger

        self.config_loader = ConfigLoader.create(config_dir)

        self.instruments: dict[str, Instrument] = {}
        self.configs: dict[str, DefaultConfig] = {}
        self.matchers: dict[str, LegMatcher] = {}
        self.atr_references: dict[str, ATRReference] = {}

        self.logger.info("Step matching engine initialized")

    def add_instrument(
        self,
        symbol: str,
        tick_size: float,
        overrides: Optional[dict[str, Any]] = None
    ) -> bool:
        """
        Register an instrument for measurement.

        Args:
            symbol: Instrument symbol, also the key into instruments.yaml
            tick_size: Minimal price increment
            overrides: Per-call configuration overrides

        Returns:
            True if the instrument was registered
        """
        if not symbol:
            self.logger.error("Invalid instrument - missing symbol", tick_size=tick_size)
            return False

        if not isinstance(tick_size, (int, float)) or not math.isfinite(tick_size) or tick_size <= 0:
            self.logger.error(
                "Invalid instrument - tick size must be a positive number",
                symbol=symbol,
                tick_size=tick_size
            )
            return False

        merged = self.config_loader.merge_config(symbol, overrides)
        validation_errors = ConfigValidator.validate_config(merged)
        if validation_errors:
            error_msgs = [f"{err.field}: {err.message} (got: {err.value})" for err in validation_errors]
            self.logger.error(
                "Instrument configuration validation failed",
                symbol=symbol,
                errors=error_msgs
            )
            return False

        instrument = Instrument(symbol=symbol, tick_size=float(tick_size))
        config = self.config_loader.build_config(symbol, overrides)

        self.instruments[symbol] = instrument
        self.configs[symbol] = config
        self.matchers[symbol] = LegMatcher(instrument, config, self.matching_logger.bind(symbol=symbol))
        self.atr_references.pop(symbol, None)

        self.logger.info(
            "Added instrument for measurement",
            symbol=symbol,
            tick_size=tick_size,
            precision=instrument.precision
        )
        return True

    def remove_instrument(self, symbol: str) -> None:
        """Remove an instrument and its ATR reference."""
        self.instruments.pop(symbol, None)
        self.configs.pop(symbol, None)
        self.matchers.pop(symbol, None)
        self.atr_references.pop(symbol, None)

        self.logger.info("Removed instrument", symbol=symbol)

    def set_atr_reference(self, symbol: str, minutes: float, atr_price: float) -> Optional[ATRReference]:
        """
        Store a known ATR for an instrument; invalid references are rejected.

        Raises:
            MalformedDataError: if the symbol is not registered
        """
        self._get_matcher(symbol)

        reference = ATRReference(minutes=minutes, atr_price=atr_price)
        if not reference.is_valid:
            self.logger.warning(
                "Rejected ATR reference",
                symbol=symbol,
                minutes=minutes,
                atr_price=atr_price
            )
            return None

        self.atr_references[symbol] = reference
        return reference

    def update_atr(self, symbol: str, candles: Sequence[Candle], minutes: float) -> Optional[ATRReference]:
        """
        Recalculate the ATR reference from bar history.

        Args:
            symbol: Registered instrument symbol
            candles: Bars in chronological order
            minutes: Bar interval of the candles

        Returns:
            The stored reference, or None if there are too few bars
        """
        calculator = ATRCalculator(self.configs[self._require(symbol)].atr.period)
        reference = calculator.reference(candles, minutes)

        if reference is None:
            self.logger.debug(
                "Insufficient bars for ATR",
                symbol=symbol,
                bars=len(candles),
                period=calculator.period
            )
            return None

        return self.set_atr_reference(symbol, reference.minutes, reference.atr_price)

    def measure(
        self,
        symbol: str,
        start_price: float,
        end_price: float,
        price: Optional[float] = None,
        m_candidates: Optional[Mapping[str, float]] = None,
        atr_candidates: Optional[Mapping[str, float]] = None
    ) -> Optional[RulerReading]:
        """
        Measure a leg for a registered instrument.

        Args:
            symbol: Registered instrument symbol
            start_price: Price where the leg starts
            end_price: Price where the leg ends
            price: Base price for TH (defaults to end_price)
            m_candidates: Label -> M value map (defaults to the fractal M map)
            atr_candidates: Label -> 3xATR map, used without an ATR reference

        Returns:
            RulerReading, or None when the inputs cannot be used
        """
        try:
            matcher = self._get_matcher(symbol)

            for name, value in (("start_price", start_price), ("end_price", end_price)):
                if not isinstance(value, (int, float)) or not math.isfinite(value):
                    raise MalformedDataError(
                        f"{name} must be a finite number",
                        raw_data=str(value)[:100],
                        expected_format="float"
                    )

            reading = matcher.measure(
                start_price,
                end_price,
                price=price,
                reference=self.atr_references.get(symbol),
                m_candidates=CandidateMap.from_mapping(m_candidates) if m_candidates else None,
                atr_candidates=CandidateMap.from_mapping(atr_candidates) if atr_candidates else None,
            )

            self.logger.debug(
                "Measured leg",
                symbol=symbol,
                leg_pips=reading.leg_pips,
                m_label=reading.m_match.label,
                atr_label=reading.atr_match.label
            )
            return reading

        except DataQualityError as e:
            self.logger.warning(
                "Data quality issue during measurement",
                error=str(e),
                error_type=type(e).__name__,
                symbol=symbol,
                context=e.context
            )
            return None

        except SystemFailureError as e:
            self.logger.error(
                "Calculation failure during measurement",
                error=str(e),
                error_type=type(e).__name__,
                symbol=symbol,
                context=e.context
            )
            return None

    def calculation_table(self, symbol: str, minutes: float, price: float) -> str:
        """Diagnostic TH/ATR table for an instrument at a timeframe."""
        instrument = self.instruments[self._require(symbol)]

        atr_value = None
        reference = self.atr_references.get(symbol)
        if reference is not None:
            try:
                atr_value = estimate_atr(reference.atr_price, reference.minutes, minutes)
            except InvalidReferenceError as e:
                self.logger.warning("ATR omitted from table", symbol=symbol, error=str(e))

        return format_calculation_table(instrument, minutes, price, atr_value)

    def _require(self, symbol: str) -> str:
        if symbol not in self.matchers:
            raise MalformedDataError(
                f"Instrument not registered: {symbol}",
                raw_data=symbol,
                context={"registered": sorted(self.matchers)}
            )
        return symbol

    def _get_matcher(self, symbol: str) -> LegMatcher:
        return self.matchers[self._require(symbol)]
