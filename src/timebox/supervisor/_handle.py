"""Process handle for a single supervised child.

This module provides the ProcessHandle class that wraps an anyio process
with the small surface the supervisor needs: liveness, signal delivery,
forceful kill and exit status.

Where the platform supports it (Linux 5.3+), signals are delivered through
a pidfd opened right after the spawn. A pidfd always refers to the process
it was opened for, so a recycled PID can never receive a signal meant for
the child. Elsewhere, delivery falls back to the process object, which
refuses to signal once the child has been reaped.
"""

import errno
import os
import signal
from typing import TYPE_CHECKING, Self, final

import anyio
import anyio.abc

from timebox.exceptions import SpawnError

from ._models import SpawnFailure

if TYPE_CHECKING:
    from collections.abc import Sequence


def _classify_spawn_error(error: OSError) -> SpawnFailure:
    """Map an exec failure to not-found (127) or not-executable (126)."""
    if error.errno == errno.ENOENT:
        return SpawnFailure.NOT_FOUND
    return SpawnFailure.NOT_EXECUTABLE


def _open_pidfd(pid: int) -> int | None:
    if not hasattr(os, "pidfd_open"):
        return None
    try:
        return os.pidfd_open(pid)
    except OSError:
        # Kernel without pidfd support, or the child is already gone
        return None


@final
class ProcessHandle:
    """Exclusive reference to one running child process.

    A handle is created by `spawn` and owned by the attempt that created it.
    It is never shared across attempts.
    """

    __slots__ = ("_closed", "_pidfd", "_process", "command")

    def __init__(
        self,
        process: anyio.abc.Process,
        command: tuple[str, ...],
        pidfd: int | None = None,
    ) -> None:
        self._process = process
        self._pidfd = pidfd
        self._closed = False
        self.command = command

    @classmethod
    async def spawn(cls, command: "Sequence[str]") -> Self:  # noqa: UP037
        """Start `command` with the supervisor's stdio inherited.

        Args:
            command: Program and arguments.

        Returns:
            A handle to the running child.

        Raises:
            SpawnError: If the program is missing or cannot be executed.
        """
        argv = tuple(command)
        try:
            process = await anyio.open_process(
                argv,
                stdin=None,
                stdout=None,
                stderr=None,
            )
        except OSError as e:
            reason = _classify_spawn_error(e)
            msg = f"failed to run command '{argv[0]}': {e.strerror or e}"
            raise SpawnError(msg, command=argv, reason=reason, cause=e) from e

        return cls(process, argv, _open_pidfd(process.pid))

    @property
    def pid(self) -> int:
        """Return the process ID of the child."""
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        """Return the exit status once the child has been reaped."""
        return self._process.returncode

    def is_alive(self) -> bool:
        """Check whether the child has not been reaped yet."""
        return self._process.returncode is None

    def send_signal(self, signum: signal.Signals) -> bool:
        """Deliver `signum` to the child.

        Returns:
            True if the signal was delivered, False if the child was already
            gone.

        Raises:
            OSError: For any failure other than "no such process".
        """
        if not self.is_alive():
            return False
        try:
            if self._pidfd is not None and not self._closed:
                signal.pidfd_send_signal(self._pidfd, signum)
            else:
                self._process.send_signal(signum)
        except ProcessLookupError:
            return False
        return True

    def force_kill(self) -> bool:
        """Deliver SIGKILL to the child.

        Returns:
            True if the signal was delivered, False if the child was already
            gone.
        """
        return self.send_signal(signal.SIGKILL)

    async def wait(self) -> int:
        """Wait for the child to exit and return its raw return code."""
        return await self._process.wait()

    def close(self) -> None:
        """Release the pidfd. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._pidfd is not None:
            os.close(self._pidfd)
            self._pidfd = None
