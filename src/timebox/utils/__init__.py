"""Shared utilities for timebox."""

from ._duration import MAX_DURATION_SECONDS, SECONDS_PER_UNIT, parse_duration
from ._logging import LogFormatType, create_logger
from ._signals import parse_signal, signal_name

__all__ = [
    "MAX_DURATION_SECONDS",
    "SECONDS_PER_UNIT",
    "LogFormatType",
    "create_logger",
    "parse_duration",
    "parse_signal",
    "signal_name",
]
