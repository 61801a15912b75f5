"""Top-level supervisor for one bounded invocation.

This module provides the Supervisor class that wires the retry orchestrator,
deadline racer and interrupt handler together, plus `supervise` and `run`
for callers that just want an Outcome.
"""

import signal
from functools import partial
from typing import TYPE_CHECKING, TypedDict, Unpack, final

import anyio

from timebox.utils import create_logger, signal_name

from ._events import EventEmitter
from ._interrupt import InterruptHandler
from ._models import Interrupted, SupervisorConfig, SupervisorEventType
from ._orchestrator import RetryOrchestrator
from ._racer import AttemptContext, DeadlineRacer, Spawner

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._models import Attempt, Outcome
    from ._protocol import EventSink


class SupervisorOptions(TypedDict, total=False):
    """Keyword options accepted by `supervise` and `run`."""

    sink: "EventSink | None"
    logger: "FilteringBoundLogger | None"
    handle_signals: bool
    spawn: Spawner | None


@final
class Supervisor:
    """Runs a command under a deadline with escalation and retries.

    A Supervisor is single-use: create one per invocation.

    Note:
        Only the direct child is signalled. Processes the child starts in the
        background are not part of its termination and may outlive it.
    """

    __slots__ = ("_events", "_interrupts", "_logger", "_orchestrator", "config")

    def __init__(
        self,
        config: SupervisorConfig,
        *,
        sink: "EventSink | None" = None,  # noqa: UP037
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
        handle_signals: bool = True,
        spawn: Spawner | None = None,
    ) -> None:
        """Initialize the supervisor.

        Args:
            config: Validated invocation configuration.
            sink: Receives lifecycle events. Events are dropped if None.
            logger: Structured logger. Logs warnings to stderr if None.
            handle_signals: Install SIGINT/SIGTERM handlers while running.
            spawn: Process factory, for tests and embedding.
        """
        self.config = config
        self._logger: FilteringBoundLogger = logger or create_logger()
        self._events = EventEmitter(sink, self._logger)
        racer = DeadlineRacer(config, self._events, self._logger, spawn)
        self._orchestrator = RetryOrchestrator(
            config, racer, self._events, self._logger
        )
        self._interrupts = InterruptHandler(self._logger, listen=handle_signals)

    @property
    def current_attempt(self) -> AttemptContext | None:
        """Return the context of the attempt in flight, if any."""
        return self._orchestrator.current

    @property
    def last_attempt(self) -> "Attempt | None":  # noqa: UP037
        """Return the most recently finished attempt."""
        return self._orchestrator.last_attempt

    @property
    def attempts_run(self) -> int:
        """Return how many attempts have finished."""
        return self._orchestrator.attempts_run

    @property
    def interrupted(self) -> bool:
        """Return True once a termination request has been received."""
        return self._interrupts.interrupted

    def interrupt(self, signum: int = signal.SIGINT) -> None:
        """Request termination as if `signum` had been received.

        Args:
            signum: Signal number to report.
        """
        self._interrupts.interrupt(signum)

    async def run(self) -> "Outcome":  # noqa: UP037
        """Run the invocation to its final outcome.

        Returns:
            The final Outcome. Interrupted overrides whatever the in-flight
            attempt would have produced.
        """
        config = self.config
        self._logger.debug(
            "supervisor_started",
            command=list(config.command),
            timeout=config.timeout_seconds,
            signal=config.signal.name,
            kill_after=config.kill_after_seconds,
            retry=config.retry_count,
        )

        outcome: Outcome | None = None
        async with self._interrupts.installed():
            outcome = await self._orchestrator.run()

        if self._interrupts.interrupted or outcome is None:
            signum = self._interrupts.received_signal
            outcome = Interrupted(signum)
            name = signal_name(signum) if signum is not None else "request"
            await self._events.emit(
                SupervisorEventType.INTERRUPTED,
                attempt=max(self.attempts_run - 1, 0),
                exit_code=outcome.exit_code,
                message=f"Interrupted by {name}",
            )

        self._logger.info(
            "supervisor_finished",
            outcome=outcome.kind.value,
            exit_code=outcome.exit_code,
            attempts=self.attempts_run,
        )
        return outcome


async def supervise(
    config: SupervisorConfig,
    **options: Unpack[SupervisorOptions],
) -> "Outcome":  # noqa: UP037
    """Run `config.command` under supervision and return its Outcome.

    Args:
        config: Validated invocation configuration.
        **options: See SupervisorOptions.

    Returns:
        The final Outcome; `outcome.exit_code` is the process-style code.
    """
    return await Supervisor(config, **options).run()


def run(
    config: SupervisorConfig,
    **options: Unpack[SupervisorOptions],
) -> "Outcome":  # noqa: UP037
    """Synchronous variant of `supervise` that runs its own event loop."""
    return anyio.run(partial(supervise, config, **options))
