import os
import signal
from collections.abc import Callable
from pathlib import Path

import anyio
import pytest

from timebox.supervisor import (
    Completed,
    Interrupted,
    RecordingEventSink,
    SpawnFailed,
    SpawnFailure,
    Supervisor,
    SupervisorConfig,
    SupervisorEventType,
    TimedOut,
    run,
    supervise,
)


def _config(*command: str, **values: object) -> SupervisorConfig:
    values.setdefault("timeout_seconds", 5)
    return SupervisorConfig.build(command=command, **values)


@pytest.fixture
def flaky_script(make_script: Callable[..., Path], tmp_path: Path) -> tuple[Path, Path]:
    """Return a script that fails twice then succeeds, and its counter file."""
    counter = tmp_path / "count"
    script = make_script(
        "flaky.sh",
        f"""count=$(cat "{counter}" 2>/dev/null || echo 0)
count=$((count + 1))
echo "$count" > "{counter}"
[ "$count" -ge 3 ]""",
    )
    return script, counter


def _pid_exists(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    return True


@pytest.mark.anyio
class TestSupervise:
    async def test_passes_exit_status_through(self) -> None:
        outcome = await supervise(_config("sh", "-c", "exit 42"), handle_signals=False)
        assert outcome == Completed(42)

    async def test_times_out_slow_command(self) -> None:
        started = anyio.current_time()

        outcome = await supervise(
            _config("sleep", "10", timeout_seconds=1), handle_signals=False
        )

        elapsed = anyio.current_time() - started
        assert outcome == TimedOut(signal=signal.SIGTERM, killed=False)
        assert outcome.exit_code == 124
        assert 1 <= elapsed < 4

    async def test_kill_after_stops_trapping_command(
        self, make_script: Callable[..., Path]
    ) -> None:
        script = make_script("stubborn.sh", "trap '' TERM\nsleep 5")
        sink = RecordingEventSink()
        started = anyio.current_time()

        outcome = await supervise(
            _config(str(script), timeout_seconds=1, kill_after_seconds=1),
            sink=sink,
            handle_signals=False,
        )

        elapsed = anyio.current_time() - started
        assert outcome == TimedOut(signal=signal.SIGTERM, killed=True)
        assert 2 <= elapsed < 5
        assert sink.of_type(SupervisorEventType.KILLED)

    async def test_custom_signal(self) -> None:
        outcome = await supervise(
            _config("sleep", "10", timeout_seconds=1, signal="KILL"),
            handle_signals=False,
        )
        assert outcome == TimedOut(signal=signal.SIGKILL, killed=False)

    async def test_retries_until_success(self, flaky_script: tuple[Path, Path]) -> None:
        script, counter = flaky_script
        sink = RecordingEventSink()

        outcome = await supervise(
            _config(str(script), retry_count=3, retry_interval_seconds=0, verbose=True),
            sink=sink,
            handle_signals=False,
        )

        assert outcome == Completed(0)
        assert counter.read_text().strip() == "3"
        messages = [e.message for e in sink.of_type(SupervisorEventType.RETRYING)]
        assert messages == ["Retry 1/3 after 0s...", "Retry 2/3 after 0s..."]

    async def test_timeout_is_not_retried(self) -> None:
        sink = RecordingEventSink()

        outcome = await supervise(
            _config("sleep", "10", timeout_seconds=1, retry_count=3),
            sink=sink,
            handle_signals=False,
        )

        assert isinstance(outcome, TimedOut)
        assert len(sink.of_type(SupervisorEventType.STARTED)) == 1

    async def test_death_by_outside_signal(self) -> None:
        outcome = await supervise(
            _config("sh", "-c", "kill -9 $$"), handle_signals=False
        )
        assert outcome == Completed(128 + int(signal.SIGKILL))

    async def test_missing_command(self) -> None:
        outcome = await supervise(
            _config("nonexistent_command_12345", retry_count=2), handle_signals=False
        )

        assert isinstance(outcome, SpawnFailed)
        assert outcome.reason is SpawnFailure.NOT_FOUND
        assert outcome.exit_code == 127

    async def test_not_executable(self, make_script: Callable[..., Path]) -> None:
        script = make_script("plain.sh", "exit 0", executable=False)

        outcome = await supervise(_config(str(script)), handle_signals=False)

        assert outcome.exit_code == 126

    async def test_interrupt_terminates_child(self) -> None:
        supervisor = Supervisor(_config("sleep", "30", timeout_seconds=60))
        child_pid: int | None = None

        async def interrupt_when_started() -> None:
            nonlocal child_pid
            while supervisor.current_attempt is None or (
                supervisor.current_attempt.handle is None
            ):
                await anyio.sleep(0.01)
            child_pid = supervisor.current_attempt.handle.pid
            os.kill(os.getpid(), signal.SIGTERM)

        with anyio.fail_after(10):
            async with anyio.create_task_group() as tg:
                tg.start_soon(interrupt_when_started)
                outcome = await supervisor.run()

        assert outcome == Interrupted(signal.SIGTERM)
        assert child_pid is not None
        # Reaped by the event loop shortly after the signal
        with anyio.fail_after(5):
            while _pid_exists(child_pid):
                await anyio.sleep(0.05)

    async def test_interrupt_during_retry_sleep(self) -> None:
        sink = RecordingEventSink()
        supervisor = Supervisor(
            _config("false", retry_count=5, retry_interval_seconds=30),
            sink=sink,
            handle_signals=False,
        )

        async def interrupt_after_first_attempt() -> None:
            while supervisor.attempts_run < 1:
                await anyio.sleep(0.01)
            supervisor.interrupt(signal.SIGINT)

        with anyio.fail_after(10):
            async with anyio.create_task_group() as tg:
                tg.start_soon(interrupt_after_first_attempt)
                outcome = await supervisor.run()

        assert outcome == Interrupted(signal.SIGINT)
        assert len(sink.of_type(SupervisorEventType.STARTED)) == 1


def test_run_is_synchronous() -> None:
    outcome = run(_config("true"), handle_signals=False)
    assert outcome == Completed(0)
