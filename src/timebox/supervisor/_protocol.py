"""Protocol definitions for the supervisor.

This module defines the interfaces that decouple the supervision core from
concrete processes and output implementations:
- ChildProcess: Protocol for a supervised child process
- EventSink: Protocol for consuming supervisor lifecycle events
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import signal

    from ._models import SupervisorEvent


@runtime_checkable
class ChildProcess(Protocol):
    """Protocol for a supervised child process.

    ProcessHandle is the production implementation; tests substitute fakes
    that exit on command.
    """

    @property
    def pid(self) -> int:
        """Return the process ID of the child."""
        ...

    def is_alive(self) -> bool:
        """Check whether the child is still running."""
        ...

    def send_signal(self, signum: "signal.Signals") -> bool:  # noqa: UP037
        """Deliver a signal, returning False if the child was already gone."""
        ...

    def force_kill(self) -> bool:
        """Deliver SIGKILL, returning False if the child was already gone."""
        ...

    async def wait(self) -> int:
        """Wait for the child to exit and return its raw return code."""
        ...

    def close(self) -> None:
        """Release any resources held for the child."""
        ...


@runtime_checkable
class EventSink(Protocol):
    """Protocol for consuming supervisor lifecycle events.

    EventSinks receive events as attempts start, finish, time out and are
    retried. The protocol is async so sinks can do non-blocking I/O.
    """

    async def write_event(self, event: "SupervisorEvent") -> None:  # noqa: UP037
        """Record a supervisor lifecycle event.

        Args:
            event: The lifecycle event to record.
        """
        ...
