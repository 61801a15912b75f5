"""Process-wide handling of external termination requests.

This module provides the InterruptHandler that listens for SIGINT and
SIGTERM for the whole supervised invocation (every attempt and every retry
sleep) and cancels the supervised body when one arrives. The task that owns
the in-flight attempt cleans up its own child; the handler never touches a
process handle.
"""

import signal
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, final

import anyio
import anyio.abc

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

    from structlog.typing import FilteringBoundLogger

DEFAULT_INTERRUPT_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


@final
class InterruptHandler:
    """Turns external termination requests into cancellation of the body.

    The first request wins; later ones are logged and ignored. A request
    that arrives while no body is active only records the flag, and a body
    entered afterwards is cancelled immediately.
    """

    __slots__ = ("_body_scope", "_listen", "_logger", "_received", "_signals")

    def __init__(
        self,
        logger: "FilteringBoundLogger",  # noqa: UP037
        signals: "Iterable[signal.Signals]" = DEFAULT_INTERRUPT_SIGNALS,  # noqa: UP037
        *,
        listen: bool = True,
    ) -> None:
        """Initialize the handler.

        Args:
            logger: Structured logger.
            signals: Signals treated as termination requests.
            listen: Install OS signal handlers while the body runs. Disable
                when embedding in an application that owns signal handling
                and calls `interrupt` itself.
        """
        self._logger = logger
        self._signals = tuple(signals)
        self._listen = listen
        self._received: int | None = None
        self._body_scope: anyio.CancelScope | None = None

    @property
    def interrupted(self) -> bool:
        """Return True once a termination request has been received."""
        return self._received is not None

    @property
    def received_signal(self) -> int | None:
        """Return the signal number of the first request, if any."""
        return self._received

    def interrupt(self, signum: int = signal.SIGINT) -> None:
        """Record a termination request and cancel the supervised body.

        Safe to call repeatedly and when no body is running.

        Args:
            signum: Signal number that requested termination.
        """
        if self._received is not None:
            self._logger.debug("interrupt_ignored", signal=signum)
            return

        self._received = signum
        self._logger.info("interrupt_received", signal=signum)
        if self._body_scope is not None:
            self._body_scope.cancel()

    async def _listen_for_signals(
        self,
        *,
        task_status: anyio.abc.TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        with anyio.open_signal_receiver(*self._signals) as signals:
            task_status.started()
            async for signum in signals:
                self.interrupt(signum)

    @asynccontextmanager
    async def installed(self) -> "AsyncIterator[anyio.CancelScope]":  # noqa: UP037
        """Install the handler around a supervised body.

        Yields the cancel scope of the body. Cancellation caused by an
        interrupt is absorbed here; callers check `interrupted` afterwards.
        The signal listener is removed on every exit path.
        """
        async with anyio.create_task_group() as tg:
            if self._listen:
                await tg.start(self._listen_for_signals)
            try:
                with anyio.CancelScope() as body_scope:
                    self._body_scope = body_scope
                    if self._received is not None:
                        body_scope.cancel()
                    yield body_scope
            finally:
                self._body_scope = None
                tg.cancel_scope.cancel()
