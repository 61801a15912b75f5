import logging
import signal
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

import anyio
import pytest
import structlog
from structlog.testing import CapturingLogger
from structlog.typing import FilteringBoundLogger

from timebox.exceptions import SpawnError


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.unit)


class FakeChild:
    """Child process double that exits when told to or when signalled.

    Signals listed in `ignores` are recorded but do not end the child.
    SIGKILL always ends it.
    """

    def __init__(
        self,
        *,
        pid: int = 4242,
        returncode: int | None = None,
        ignores: Iterable[signal.Signals] = (),
        signal_error: OSError | None = None,
    ) -> None:
        self.pid = pid
        self.ignores = frozenset(ignores)
        self.signal_error = signal_error
        self.signals: list[signal.Signals] = []
        self.closed = False
        self._returncode: int | None = None
        self._exited = anyio.Event()
        if returncode is not None:
            self.exit(returncode)

    @property
    def returncode(self) -> int | None:
        return self._returncode

    def exit(self, returncode: int) -> None:
        if self._returncode is None:
            self._returncode = returncode
            self._exited.set()

    def is_alive(self) -> bool:
        return self._returncode is None

    def send_signal(self, signum: signal.Signals) -> bool:
        if self.signal_error is not None:
            raise self.signal_error
        if not self.is_alive():
            return False
        self.signals.append(signum)
        if signum == signal.SIGKILL or signum not in self.ignores:
            self.exit(-int(signum))
        return True

    def force_kill(self) -> bool:
        return self.send_signal(signal.SIGKILL)

    async def wait(self) -> int:
        _ = await self._exited.wait()
        assert self._returncode is not None
        return self._returncode

    def close(self) -> None:
        self.closed = True


class ScriptedSpawner:
    """Spawner that hands out prepared children (or errors) in order."""

    def __init__(self, script: Sequence[FakeChild | SpawnError]) -> None:
        self._script = list(script)
        self.calls: list[tuple[str, ...]] = []
        self.children: list[FakeChild] = []

    async def __call__(self, command: Sequence[str]) -> FakeChild:
        self.calls.append(tuple(command))
        item = self._script.pop(0)
        if isinstance(item, SpawnError):
            raise item
        self.children.append(item)
        return item


@pytest.fixture
def make_child() -> Callable[..., FakeChild]:
    return FakeChild


@pytest.fixture
def make_spawner() -> Callable[..., ScriptedSpawner]:
    return ScriptedSpawner


@pytest.fixture
def capturing_logger() -> tuple[FilteringBoundLogger, CapturingLogger]:
    """Return a debug-level logger and the sink recording its calls."""
    cap = CapturingLogger()
    logger = structlog.wrap_logger(
        cap,
        processors=[],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
    )
    return logger, cap  # pyright: ignore[reportReturnType]


@pytest.fixture
def logger(
    capturing_logger: tuple[FilteringBoundLogger, CapturingLogger],
) -> FilteringBoundLogger:
    return capturing_logger[0]


@pytest.fixture
def log_calls(
    capturing_logger: tuple[FilteringBoundLogger, CapturingLogger],
) -> CapturingLogger:
    return capturing_logger[1]
