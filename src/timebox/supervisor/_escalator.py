"""Two-stage signal escalation.

The configured signal is delivered first. When a kill-after grace period is
set and the child is still alive once it has fully elapsed, SIGKILL follows.
Many programs trap the soft signal to clean up; SIGKILL cannot be trapped.
"""

import signal
from typing import TYPE_CHECKING, final

import anyio

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._protocol import ChildProcess


@final
class SignalEscalator:
    """Delivers the soft signal and, if configured, the forceful kill.

    Escalation is resumable: if `escalate` is cancelled during the grace
    period (for example by an interrupt that arrives after a timeout), a later
    call neither re-sends the soft signal nor kills before the grace period
    measured from the first delivery has elapsed. Each signal is sent at most
    once.

    Attributes:
        signalled: Whether the soft signal stage has run.
        killed: Whether SIGKILL was delivered.
        failed: Whether an unexpected OS error stopped the escalation. The
            escalation is then treated as finished.
    """

    __slots__ = (
        "_finished",
        "_handle",
        "_kill_after",
        "_logger",
        "_signal",
        "_signalled_at",
        "failed",
        "killed",
        "signalled",
    )

    def __init__(
        self,
        handle: "ChildProcess",  # noqa: UP037
        signum: signal.Signals,
        kill_after: int | None,
        logger: "FilteringBoundLogger",  # noqa: UP037
    ) -> None:
        """Initialize the escalator.

        Args:
            handle: The child to signal. May already have exited.
            signum: Soft signal to deliver first.
            kill_after: Grace period in seconds before SIGKILL, or None to
                stop after the soft signal.
            logger: Structured logger for delivery events and errors.
        """
        self._handle = handle
        self._signal = signum
        self._kill_after = kill_after
        self._logger = logger
        self._signalled_at: float | None = None
        self._finished = False
        self.signalled = False
        self.killed = False
        self.failed = False

    async def escalate(self) -> None:
        """Run the escalation to completion.

        After this returns, either the child is no longer alive, SIGKILL has
        been attempted, or no kill-after period was configured (in which case
        the caller waits on the child itself).
        """
        if self._finished:
            return

        if self._signalled_at is None:
            self._signalled_at = anyio.current_time()
            self.signalled = True
            if not self._deliver(self._signal):
                # A child that cannot be signalled cannot be killed either
                self.failed = True
                self._finished = True
                return

        if self._kill_after is None:
            self._finished = True
            return

        remaining = self._signalled_at + self._kill_after - anyio.current_time()
        if remaining > 0 and self._handle.is_alive():
            with anyio.move_on_after(remaining):
                _ = await self._handle.wait()

        if self._handle.is_alive():
            self._force_kill()
        else:
            self._finished = True

    def _force_kill(self) -> None:
        self._finished = True
        try:
            delivered = self._handle.force_kill()
        except OSError as e:
            self.failed = True
            self._logger.error(
                "force_kill_failed",
                pid=self._handle.pid,
                error=str(e),
            )
            return

        if delivered:
            self.killed = True
            self._logger.info("force_killed", pid=self._handle.pid)
        else:
            self._logger.debug("force_kill_skipped", pid=self._handle.pid)

    def _deliver(self, signum: signal.Signals) -> bool:
        """Send the soft signal.

        Returns:
            False if an unexpected OS error prevented delivery.
        """
        try:
            delivered = self._handle.send_signal(signum)
        except OSError as e:
            self._logger.warning(
                "signal_failed",
                pid=self._handle.pid,
                signal=signum.name,
                error=str(e),
            )
            return False

        if delivered:
            self._logger.info("signal_sent", pid=self._handle.pid, signal=signum.name)
        else:
            # Exited in the window between the deadline and delivery
            self._logger.debug(
                "signal_skipped", pid=self._handle.pid, signal=signum.name
            )
        return True
