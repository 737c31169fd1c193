"""
Logging configuration and utilities for the step matching engine.
"""
from .config import configure_logging, get_logger, get_matching_logger

__all__ = ["configure_logging", "get_logger", "get_matching_logger"]
