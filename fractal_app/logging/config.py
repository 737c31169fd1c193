"""
Centralized logging configuration for the step matching engine.

This module provides standardized logging configuration using structlog.
Matching functions never look up a logger on their own; callers pass one in
as a diagnostics sink, usually obtained from get_matching_logger().
"""
import logging
import sys
from typing import IO, TYPE_CHECKING, Any, Optional

import structlog
from structlog.types import FilteringBoundLogger, Processor

if TYPE_CHECKING:
    from ..data.models import MatchResult

# Processors applied to every event before the optional ones
_BASE_PROCESSORS: tuple[Processor, ...] = (
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
)


def _renderer(format_json: bool, colors: bool) -> Processor:
    if format_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=colors)


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list[Processor]] = None,
    stream: Optional[IO[str]] = None,
    colors: bool = True
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: Render events as JSON lines instead of console text
        include_timestamp: Add an ISO timestamp to each event
        include_caller: Add filename and line number to each event
        extra_processors: Processors inserted before the renderer
        stream: Output stream (stdout if None)
        colors: Colorize console output
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        stream=stream or sys.stdout,
        format="%(message)s",
        force=True,
    )

    processors: list[Processor] = list(_BASE_PROCESSORS)

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    processors.extend(extra_processors or ())
    processors.append(_renderer(format_json, colors))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_matching_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for leg matching diagnostics.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for matching decisions
    """
    logger = get_logger(name)

    return logger.bind(
        subsystem="matching",
        audit_trail=True
    )


def log_match_result(
    logger: FilteringBoundLogger,
    variant: str,
    leg_pips: float,
    result: "MatchResult",
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a match result with standardized format.

    Args:
        logger: Structlog logger instance
        variant: Matcher that produced the result ("m", "atr", "atr_scaled")
        leg_pips: Measured leg in pips
        result: Result returned to the caller
        context: Additional context data
    """
    bound_logger = logger.bind(
        variant=variant,
        leg_pips=leg_pips,
        label=result.label,
        matched_value_pips=result.matched_value_pips,
        residual_pips=result.residual_pips,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if result.is_degenerate:
        bound_logger.warning("No candidate matched leg")
    else:
        bound_logger.info("Leg matched")


def log_refinement(
    logger: FilteringBoundLogger,
    variant: str,
    iterations: int,
    low_minutes: float,
    high_minutes: float,
    converged: bool
) -> None:
    """Log the outcome of a bisection refinement."""
    logger.debug(
        "Refinement finished",
        variant=variant,
        iterations=iterations,
        low_minutes=low_minutes,
        high_minutes=high_minutes,
        converged=converged,
    )
