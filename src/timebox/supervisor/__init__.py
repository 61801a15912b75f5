"""Supervision engine for bounded command execution.

This package runs a command under a deadline, escalates from a soft signal
to SIGKILL when the command ignores it, and retries failing invocations.

Key Components:
    - SupervisorConfig: Validated configuration for one invocation
    - Completed / TimedOut / Interrupted / SpawnFailed: Outcome variants
    - ProcessHandle: Spawned child with pidfd-backed signalling
    - SignalEscalator: Soft signal, grace period, SIGKILL
    - DeadlineRacer: One attempt raced against the deadline
    - RetryOrchestrator: Attempt loop and retry policy
    - InterruptHandler: SIGINT/SIGTERM handling for the whole invocation
    - Supervisor / supervise / run: Entry points returning an Outcome
    - EventSink / ConsoleEventSink / RecordingEventSink: Lifecycle events

Example:
    >>> from timebox.supervisor import SupervisorConfig, run
    >>> config = SupervisorConfig.build(timeout_seconds=5, command=("sleep", "1"))
    >>> run(config).exit_code
    0
"""

from ._escalator import SignalEscalator
from ._events import EventEmitter
from ._exit_codes import (
    EXIT_INTERRUPTED,
    EXIT_NOT_EXECUTABLE,
    EXIT_NOT_FOUND,
    EXIT_SUCCESS,
    EXIT_TIMED_OUT,
    EXIT_USAGE_ERROR,
)
from ._handle import ProcessHandle
from ._interrupt import DEFAULT_INTERRUPT_SIGNALS, InterruptHandler
from ._models import (
    Attempt,
    Completed,
    Interrupted,
    Outcome,
    OutcomeKind,
    SpawnFailed,
    SpawnFailure,
    SupervisorConfig,
    SupervisorEvent,
    SupervisorEventType,
    TimedOut,
    is_retryable,
)
from ._orchestrator import RetryOrchestrator, format_retry_message
from ._output import ConsoleEventSink, RecordingEventSink
from ._protocol import ChildProcess, EventSink
from ._racer import AttemptContext, DeadlineRacer, Spawner
from ._supervisor import Supervisor, SupervisorOptions, run, supervise

__all__ = [
    "DEFAULT_INTERRUPT_SIGNALS",
    "EXIT_INTERRUPTED",
    "EXIT_NOT_EXECUTABLE",
    "EXIT_NOT_FOUND",
    "EXIT_SUCCESS",
    "EXIT_TIMED_OUT",
    "EXIT_USAGE_ERROR",
    "Attempt",
    "AttemptContext",
    "ChildProcess",
    "Completed",
    "ConsoleEventSink",
    "DeadlineRacer",
    "EventEmitter",
    "EventSink",
    "InterruptHandler",
    "Interrupted",
    "Outcome",
    "OutcomeKind",
    "ProcessHandle",
    "RecordingEventSink",
    "RetryOrchestrator",
    "SignalEscalator",
    "SpawnFailed",
    "SpawnFailure",
    "Spawner",
    "Supervisor",
    "SupervisorConfig",
    "SupervisorEvent",
    "SupervisorEventType",
    "SupervisorOptions",
    "TimedOut",
    "format_retry_message",
    "is_retryable",
    "run",
    "supervise",
]
