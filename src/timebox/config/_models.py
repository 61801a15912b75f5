"""Settings models.

This module provides the Pydantic models for settings that are read from
the environment:
- LogLevel / LogFormat: Logging enums
- LoggingConfig: Where and how the supervisor logs
- DefaultsConfig: Environment defaults for command-line options
- Settings: Root settings container
"""

from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, PositiveInt


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
        max_bytes: Rotate the log file after this many bytes.
        backup_count: Number of rotated log files to keep.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.WARNING
    format: LogFormat = LogFormat.TEXT
    file: str = ""
    max_bytes: PositiveInt | None = None
    backup_count: NonNegativeInt | None = None


class DefaultsConfig(BaseModel):
    """Default values for options not given on the command line.

    Durations are kept as strings so they go through the same parser as
    command-line values.

    Attributes:
        signal: Signal sent when the deadline elapses.
        kill_after: Grace period before the forceful kill, if any.
        retry: Number of retries after a failing attempt.
        retry_interval: Wait between attempts.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    signal: str = "TERM"
    kill_after: str | None = None
    retry: NonNegativeInt = 0
    retry_interval: str = "1s"


class Settings(BaseModel):
    """Root settings container."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
