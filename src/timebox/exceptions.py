"""Timebox exceptions."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from timebox.supervisor._models import SpawnFailure


class TimeboxError(Exception):
    """Base exception for timebox errors."""


class UsageError(TimeboxError, ValueError):
    """Raised when the invocation itself is invalid.

    Usage errors are always detected before any process is spawned and map
    to exit code 125.
    """


class DurationError(UsageError):
    """Raised when a duration string cannot be parsed.

    Attributes:
        value: The raw duration string that was rejected.
    """

    def __init__(self, message: str, *, value: str) -> None:
        """Initialize with error message and the rejected value."""
        super().__init__(message)
        self.value: str = value


class SignalNameError(UsageError):
    """Raised when a signal name or number is not recognized.

    Attributes:
        value: The raw signal name or number that was rejected.
    """

    def __init__(self, message: str, *, value: str) -> None:
        """Initialize with error message and the rejected value."""
        super().__init__(message)
        self.value: str = value


class SettingsError(UsageError):
    """Raised when settings from the environment fail validation."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        """Initialize with error message and optional offending key."""
        super().__init__(message)
        self.key: str | None = key


class SpawnError(TimeboxError):
    """Raised when a child process cannot be started.

    Attributes:
        command: The argv that failed to start.
        reason: Whether the command was missing or not executable.
        cause: The underlying operating system error.
    """

    def __init__(
        self,
        message: str,
        *,
        command: tuple[str, ...],
        reason: "SpawnFailure",  # noqa: UP037
        cause: OSError | None = None,
    ) -> None:
        """Initialize with error message and spawn context.

        Args:
            message: Human-readable error message.
            command: The argv that failed to start.
            reason: Classified failure reason.
            cause: The underlying exception that caused the failure.
        """
        super().__init__(message)
        self.command: tuple[str, ...] = command
        self.reason: "SpawnFailure" = reason  # noqa: UP037
        self.cause: OSError | None = cause
