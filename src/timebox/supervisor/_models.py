"""Data models for the supervisor.

This module defines the core data types for supervised execution:
- SupervisorConfig: Validated, immutable configuration for one invocation
- OutcomeKind / SpawnFailure: Classification enums
- Completed, TimedOut, Interrupted, SpawnFailed: The Outcome variants
- Attempt: Immutable record of one execution of the command
- SupervisorEventType / SupervisorEvent: Lifecycle event records
"""

from dataclasses import dataclass
from enum import StrEnum
from signal import Signals
from typing import Annotated, ClassVar, Self, TypeAlias

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeInt,
    ValidationError,
    field_validator,
)

from timebox.exceptions import UsageError
from timebox.utils import parse_signal

from ._exit_codes import (
    EXIT_INTERRUPTED,
    EXIT_NOT_EXECUTABLE,
    EXIT_NOT_FOUND,
    EXIT_SUCCESS,
    EXIT_TIMED_OUT,
    SIGNAL_EXIT_BASE,
)


class SupervisorConfig(BaseModel):
    """Configuration for one supervised invocation.

    Attributes:
        command: Command and arguments to execute.
        timeout_seconds: Deadline for a single attempt.
        signal: Signal sent when the deadline elapses.
        kill_after_seconds: Grace period before SIGKILL, or None to never
            escalate.
        retry_count: Additional attempts allowed after a failing one.
        retry_interval_seconds: Wait between attempts.
        verbose: Emit retry progress messages.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    command: Annotated[tuple[str, ...], Field(min_length=1)]
    timeout_seconds: NonNegativeInt
    signal: Signals = Signals.SIGTERM
    kill_after_seconds: NonNegativeInt | None = None
    retry_count: NonNegativeInt = 0
    retry_interval_seconds: NonNegativeInt = 1
    verbose: bool = False

    @field_validator("signal", mode="before")
    @classmethod
    def _resolve_signal(cls, value: object) -> Signals:
        if isinstance(value, (str, int)):
            return parse_signal(value)
        return value  # pyright: ignore[reportReturnType]

    @field_validator("command")
    @classmethod
    def _require_program(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value[0]:
            msg = "command must not be empty"
            raise ValueError(msg)
        return value

    @classmethod
    def build(cls, **values: object) -> Self:
        """Validate values into a config, reporting failures as usage errors.

        Raises:
            UsageError: If any value is invalid.
        """
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"])
            reason = str(first["msg"]).removeprefix("Value error, ")
            msg = f"{field}: {reason}" if field else reason
            raise UsageError(msg) from e

    @property
    def max_attempts(self) -> int:
        """Return the total number of attempts the retry budget allows."""
        return self.retry_count + 1


class OutcomeKind(StrEnum):
    """Classification of a finished attempt."""

    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    INTERRUPTED = "interrupted"
    SPAWN_FAILED = "spawn_failed"


class SpawnFailure(StrEnum):
    """Why a command could not be started."""

    NOT_FOUND = "not_found"
    NOT_EXECUTABLE = "not_executable"


@dataclass(frozen=True, slots=True)
class Completed:
    """The command exited on its own.

    Attributes:
        code: Exit status, 0-255. Death by a signal the supervisor did not
            send is reported as 128 + signal number.
    """

    kind: ClassVar[OutcomeKind] = OutcomeKind.COMPLETED

    code: int

    @classmethod
    def from_returncode(cls, returncode: int) -> Self:
        """Build from a ``subprocess`` return code (negative for signals)."""
        if returncode < 0:
            return cls(SIGNAL_EXIT_BASE - returncode)
        return cls(returncode)

    @property
    def exit_code(self) -> int:
        return self.code

    @property
    def succeeded(self) -> bool:
        return self.code == EXIT_SUCCESS


@dataclass(frozen=True, slots=True)
class TimedOut:
    """The deadline elapsed before the command exited.

    Attributes:
        signal: The signal delivered when the deadline elapsed.
        killed: Whether escalation had to fall back to SIGKILL.
    """

    kind: ClassVar[OutcomeKind] = OutcomeKind.TIMED_OUT

    signal: Signals = Signals.SIGTERM
    killed: bool = False

    @property
    def exit_code(self) -> int:
        return EXIT_TIMED_OUT


@dataclass(frozen=True, slots=True)
class Interrupted:
    """An external termination request aborted the invocation.

    Attributes:
        signal: The signal that requested termination, if one was received.
    """

    kind: ClassVar[OutcomeKind] = OutcomeKind.INTERRUPTED

    signal: int | None = None

    @property
    def exit_code(self) -> int:
        return EXIT_INTERRUPTED


@dataclass(frozen=True, slots=True)
class SpawnFailed:
    """The command could not be started.

    Attributes:
        reason: Missing command or command that could not be invoked.
        message: Operating system error text.
    """

    kind: ClassVar[OutcomeKind] = OutcomeKind.SPAWN_FAILED

    reason: SpawnFailure
    message: str = ""

    @property
    def exit_code(self) -> int:
        if self.reason == SpawnFailure.NOT_FOUND:
            return EXIT_NOT_FOUND
        return EXIT_NOT_EXECUTABLE


Outcome: TypeAlias = Completed | TimedOut | Interrupted | SpawnFailed


def is_retryable(outcome: Outcome) -> bool:
    """Return True if the retry policy allows another attempt after `outcome`.

    Only a command that ran and exited non-zero is retried. Success, timeouts,
    interrupts and spawn failures are terminal.
    """
    return isinstance(outcome, Completed) and not outcome.succeeded


@dataclass(frozen=True, slots=True)
class Attempt:
    """One execution of the command within the retry loop.

    Attributes:
        index: 0-based attempt number.
        started_at: ISO 8601 timestamp of when the attempt began.
        outcome: Classified result of the attempt.
    """

    index: int
    started_at: str
    outcome: Outcome


class SupervisorEventType(StrEnum):
    """Types of supervisor lifecycle events.

    - STARTED: The command was spawned for an attempt
    - EXITED: The command exited before its deadline
    - TIMED_OUT: The deadline elapsed
    - KILLED: Escalation fell back to SIGKILL
    - RETRYING: A new attempt is scheduled after the retry interval
    - INTERRUPTED: An external termination request aborted the invocation
    - SPAWN_FAILED: The command could not be started
    """

    STARTED = "started"
    EXITED = "exited"
    TIMED_OUT = "timed_out"
    KILLED = "killed"
    RETRYING = "retrying"
    INTERRUPTED = "interrupted"
    SPAWN_FAILED = "spawn_failed"


@dataclass(frozen=True, slots=True)
class SupervisorEvent:
    """Immutable supervisor lifecycle event.

    Attributes:
        event_type: Type of lifecycle event.
        attempt: 0-based index of the attempt the event belongs to.
        timestamp: ISO 8601 formatted timestamp.
        pid: Process ID if applicable.
        exit_code: Exit code if the process terminated.
        message: Optional human-readable message.
    """

    event_type: SupervisorEventType
    attempt: int
    timestamp: str
    pid: int | None = None
    exit_code: int | None = None
    message: str | None = None
