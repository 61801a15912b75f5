"""Retry orchestration across attempts.

This module provides the RetryOrchestrator that drives one to
``retry_count + 1`` attempts through the DeadlineRacer, strictly one after
another, and applies the retry policy to each outcome.
"""

from typing import TYPE_CHECKING, final

import anyio

from ._events import get_timestamp
from ._models import (
    Attempt,
    Interrupted,
    SupervisorConfig,
    SupervisorEventType,
    is_retryable,
)
from ._racer import AttemptContext, DeadlineRacer

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._events import EventEmitter
    from ._models import Outcome


def format_retry_message(attempt: int, retry_count: int, interval: int) -> str:
    """Return the verbose progress line printed before a retry.

    The format is stable so log scrapers can rely on it, e.g.
    ``Retry 1/3 after 2s...``.
    """
    return f"Retry {attempt}/{retry_count} after {interval}s..."


@final
class RetryOrchestrator:
    """Runs attempts until one succeeds, a terminal outcome occurs, or the
    retry budget is exhausted.

    Only the latest attempt and the one before it are retained.

    Attributes:
        current: Context of the attempt in flight, if any.
        last_attempt: The most recently finished attempt.
        previous_attempt: The attempt finished before `last_attempt`.
    """

    __slots__ = (
        "_config",
        "_events",
        "_logger",
        "_racer",
        "current",
        "last_attempt",
        "previous_attempt",
    )

    def __init__(
        self,
        config: SupervisorConfig,
        racer: DeadlineRacer,
        events: "EventEmitter",  # noqa: UP037
        logger: "FilteringBoundLogger",  # noqa: UP037
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Invocation configuration.
            racer: Runs a single attempt.
            events: Emitter for lifecycle events.
            logger: Structured logger.
        """
        self._config = config
        self._racer = racer
        self._events = events
        self._logger = logger
        self.current: AttemptContext | None = None
        self.last_attempt: Attempt | None = None
        self.previous_attempt: Attempt | None = None

    @property
    def attempts_run(self) -> int:
        """Return how many attempts have finished so far."""
        return 0 if self.last_attempt is None else self.last_attempt.index + 1

    async def run(self) -> "Outcome":  # noqa: UP037
        """Run the retry loop.

        Returns:
            The outcome of the last attempt run.

        Raises:
            Cancelled: When interrupted. The in-flight attempt has been
                recorded as Interrupted and its child cleaned up.
        """
        config = self._config
        outcome: Outcome | None = None

        for index in range(config.max_attempts):
            if index > 0:
                await self._wait_before_retry(index)

            outcome = await self._run_attempt(index)
            if not is_retryable(outcome):
                break

            self._logger.info(
                "attempt_failed",
                attempt=index,
                exit_code=outcome.exit_code,
                retries_left=config.retry_count - index,
            )

        if outcome is None:
            # max_attempts is always at least one
            msg = "retry loop ran no attempts"
            raise RuntimeError(msg)
        return outcome

    async def _wait_before_retry(self, index: int) -> None:
        config = self._config
        message = format_retry_message(
            index, config.retry_count, config.retry_interval_seconds
        )
        self._logger.debug(
            "retry_scheduled",
            attempt=index,
            interval=config.retry_interval_seconds,
        )
        if config.verbose:
            await self._events.emit(
                SupervisorEventType.RETRYING, attempt=index, message=message
            )
        await anyio.sleep(config.retry_interval_seconds)

    async def _run_attempt(self, index: int) -> "Outcome":  # noqa: UP037
        started_at = get_timestamp()
        context = AttemptContext(index=index)
        self.current = context
        try:
            outcome = await self._racer.run(context)
        except anyio.get_cancelled_exc_class():
            self._record(Attempt(index, started_at, Interrupted()))
            raise
        finally:
            self.current = None

        self._record(Attempt(index, started_at, outcome))
        return outcome

    def _record(self, attempt: Attempt) -> None:
        self.previous_attempt = self.last_attempt
        self.last_attempt = attempt
