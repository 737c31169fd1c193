"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_matching_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate M-step matching parameters."""
        errors = []

        for name in ("refine_tolerance_pips", "convergence_pips"):
            if name in params:
                value = params[name]
                if not _is_number(value) or value < 0:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a non-negative number",
                        value=value
                    ))

        if "max_iterations" in params:
            value = params["max_iterations"]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0 or value > 100:
                errors.append(ValidationError(
                    field="max_iterations",
                    message="Must be a positive integer no greater than 100",
                    value=value
                ))

        if "min_span_minutes" in params:
            value = params["min_span_minutes"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="min_span_minutes",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_atr_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate ATR parameters."""
        errors = []

        # Validate factor
        if "factor" in params:
            value = params["factor"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="factor",
                    message="Must be a positive number",
                    value=value
                ))

        # Validate period
        if "period" in params:
            value = params["period"]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                errors.append(ValidationError(
                    field="period",
                    message="Must be a positive integer",
                    value=value
                ))

        # Validate search domain
        low = params.get("min_minutes")
        high = params.get("max_minutes")
        if low is not None and (not _is_number(low) or low <= 0):
            errors.append(ValidationError(
                field="min_minutes",
                message="Must be a positive number",
                value=low
            ))
        elif low is not None and high is not None and _is_number(high) and high <= low:
            errors.append(ValidationError(
                field="max_minutes",
                message="Must be greater than min_minutes",
                value=high
            ))

        if "tolerance_pips" in params:
            value = params["tolerance_pips"]
            if not _is_number(value) or value < 0:
                errors.append(ValidationError(
                    field="tolerance_pips",
                    message="Must be a non-negative number",
                    value=value
                ))

        if "max_iterations" in params:
            value = params["max_iterations"]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0 or value > 100:
                errors.append(ValidationError(
                    field="max_iterations",
                    message="Must be a positive integer no greater than 100",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_fractal_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate TH and M-step parameters."""
        errors = []

        if "th_to_m_factor" in params:
            value = params["th_to_m_factor"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="th_to_m_factor",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "matching" in config:
            errors.extend(ConfigValidator.validate_matching_params(config["matching"]))

        if "atr" in config:
            errors.extend(ConfigValidator.validate_atr_params(config["atr"]))

        if "fractal" in config:
            errors.extend(ConfigValidator.validate_fractal_params(config["fractal"]))

        return errors
