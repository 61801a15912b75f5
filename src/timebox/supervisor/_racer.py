"""Deadline racer for a single attempt.

This module provides the DeadlineRacer that runs the command once, racing
the child's exit against the deadline, and the AttemptContext that holds the
per-attempt state the racer owns.
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias, final

import anyio

from timebox.exceptions import SpawnError
from timebox.utils import signal_name

from ._escalator import SignalEscalator
from ._handle import ProcessHandle
from ._models import (
    Completed,
    SpawnFailed,
    SupervisorConfig,
    SupervisorEventType,
    TimedOut,
)
from ._protocol import ChildProcess

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._events import EventEmitter
    from ._models import Outcome

Spawner: TypeAlias = Callable[[Sequence[str]], Awaitable[ChildProcess]]


@dataclass(slots=True)
class AttemptContext:
    """Mutable state of the attempt currently in flight.

    Only the task running the attempt mutates it. Other parties (the
    interrupt path, callers observing progress) read it.

    Attributes:
        index: 0-based attempt number.
        handle: The running child, or None before spawn and after disposal.
        escalator: Escalation state for the child, once spawned.
        timed_out: Whether the deadline elapsed before the child exited.
    """

    index: int
    handle: ChildProcess | None = None
    escalator: SignalEscalator | None = None
    timed_out: bool = False


@final
class DeadlineRacer:
    """Runs one attempt of the command under a deadline.

    The child's exit races the deadline. Whichever comes first decides the
    outcome; losing the race never sends a signal by itself. Only the
    escalator signals, and only after the deadline or on interrupt.
    """

    __slots__ = ("_config", "_events", "_logger", "_spawn")

    def __init__(
        self,
        config: SupervisorConfig,
        events: "EventEmitter",  # noqa: UP037
        logger: "FilteringBoundLogger",  # noqa: UP037
        spawn: "Spawner | None" = None,  # noqa: UP037
    ) -> None:
        """Initialize the racer.

        Args:
            config: Invocation configuration.
            events: Emitter for lifecycle events.
            logger: Structured logger.
            spawn: Process factory. Uses ProcessHandle.spawn if None.
        """
        self._config = config
        self._events = events
        self._logger = logger
        self._spawn: Spawner = spawn or ProcessHandle.spawn

    async def run(self, context: AttemptContext) -> "Outcome":  # noqa: UP037
        """Execute the command once and classify the result.

        Args:
            context: Fresh context for this attempt; populated while the
                child is alive.

        Returns:
            Completed, TimedOut or SpawnFailed. Interrupts surface as
            cancellation after the child has been cleaned up.
        """
        config = self._config
        try:
            handle = await self._spawn(config.command)
        except SpawnError as e:
            # Reported to the user through the outcome; not a supervisor fault
            self._logger.info(
                "spawn_failed",
                attempt=context.index,
                command=config.command[0],
                reason=e.reason.value,
            )
            outcome = SpawnFailed(e.reason, str(e))
            await self._events.emit(
                SupervisorEventType.SPAWN_FAILED,
                attempt=context.index,
                exit_code=outcome.exit_code,
                message=str(e),
            )
            return outcome

        escalator = SignalEscalator(
            handle,
            config.signal,
            config.kill_after_seconds,
            self._logger.bind(attempt=context.index),
        )
        context.handle = handle
        context.escalator = escalator

        try:
            self._logger.debug("attempt_started", attempt=context.index, pid=handle.pid)
            await self._events.emit(
                SupervisorEventType.STARTED,
                attempt=context.index,
                pid=handle.pid,
                message=f"Started {' '.join(config.command)}",
            )
            return await self._race(context, handle, escalator)

        except anyio.get_cancelled_exc_class():
            with anyio.CancelScope(shield=True):
                await self._abort(context, handle, escalator)
            raise

        finally:
            context.handle = None
            handle.close()

    async def _race(
        self,
        context: AttemptContext,
        handle: ChildProcess,
        escalator: SignalEscalator,
    ) -> "Outcome":  # noqa: UP037
        config = self._config

        returncode: int | None = None
        with anyio.move_on_after(config.timeout_seconds):
            returncode = await handle.wait()

        if returncode is not None:
            completed = Completed.from_returncode(returncode)
            self._logger.debug(
                "attempt_exited", attempt=context.index, exit_code=completed.code
            )
            await self._events.emit(
                SupervisorEventType.EXITED,
                attempt=context.index,
                pid=handle.pid,
                exit_code=completed.code,
            )
            return completed

        context.timed_out = True
        self._logger.info(
            "deadline_exceeded",
            attempt=context.index,
            pid=handle.pid,
            timeout=config.timeout_seconds,
        )
        await self._events.emit(
            SupervisorEventType.TIMED_OUT,
            attempt=context.index,
            pid=handle.pid,
            message=(
                f"Timed out after {config.timeout_seconds}s, "
                f"sending {signal_name(config.signal)}"
            ),
        )

        await escalator.escalate()
        if not escalator.failed:
            # Without kill-after this waits for as long as the child takes
            _ = await handle.wait()

        if escalator.killed:
            await self._emit_killed(context, handle)

        return TimedOut(signal=config.signal, killed=escalator.killed)

    async def _abort(
        self,
        context: AttemptContext,
        handle: ChildProcess,
        escalator: SignalEscalator,
    ) -> None:
        """Clean up the child after an interrupt, shielded from cancellation.

        Applies the same escalation as a timeout. The child is only waited for
        once SIGKILL has been sent, so a child that ignores the soft signal
        with no kill-after configured does not block the interrupt.
        """
        if not handle.is_alive():
            return

        self._logger.info("attempt_aborted", attempt=context.index, pid=handle.pid)
        await escalator.escalate()
        if escalator.killed:
            _ = await handle.wait()
            await self._emit_killed(context, handle)

    async def _emit_killed(
        self,
        context: AttemptContext,
        handle: ChildProcess,
    ) -> None:
        await self._events.emit(
            SupervisorEventType.KILLED,
            attempt=context.index,
            pid=handle.pid,
            message=(
                f"Still running {self._config.kill_after_seconds}s after "
                f"{signal_name(self._config.signal)}, sent KILL"
            ),
        )
