# pyright: reportUnusedFunction=false
"""The command-line interface for timebox."""

import sys
from collections.abc import Mapping, Sequence
from functools import partial
from typing import Annotated, Any

import anyio
from cyclopts import App, CycloptsError, Parameter
from rich.console import Console

from timebox import __version__
from timebox.config import load_settings
from timebox.exceptions import UsageError
from timebox.supervisor import (
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
    EXIT_USAGE_ERROR,
    ConsoleEventSink,
    SpawnFailed,
    SupervisorConfig,
    supervise,
)
from timebox.utils import create_logger, parse_duration, parse_signal

from ._split import split_command_line

HELP = """\
Run COMMAND, and kill it if it is still running after DURATION.

DURATION is a whole number with an optional suffix: `s` for seconds (the
default), `m` for minutes, `h` for hours or `d` for days. A duration of 0
times out immediately.

Exit status:

- 124 if COMMAND times out
- 125 if timebox itself fails
- 126 if COMMAND is found but cannot be invoked
- 127 if COMMAND cannot be found
- 130 if timebox is interrupted
- otherwise the exit status of COMMAND

Examples:

- `timebox 10 make test`
- `timebox -s INT -k 5s 1m ./server`
- `timebox -r 3 -i 2s -v 30s curl -f https://example.com`
"""


def _parse_retry(value: str) -> int:
    msg = f"invalid retry count '{value}'"
    if not value.isdigit():
        raise UsageError(msg)
    try:
        return int(value)
    except ValueError:
        # More digits than int() converts
        raise UsageError(msg) from None


def _build_overrides(
    *,
    signal: str | None,
    kill_after: str | None,
    retry: str | None,
    retry_interval: str | None,
) -> dict[str, Any]:
    defaults: dict[str, Any] = {}
    if signal is not None:
        defaults["signal"] = signal
    if kill_after is not None:
        defaults["kill_after"] = kill_after
    if retry is not None:
        defaults["retry"] = _parse_retry(retry)
    if retry_interval is not None:
        defaults["retry_interval"] = retry_interval
    return {"defaults": defaults} if defaults else {}


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> App:
    """Create the timebox application.

    Args:
        console: Console for help and version output.
        error_console: Console for diagnostics and progress lines.
        environ: Environment for settings (defaults to ``os.environ``).

    Returns:
        An App whose default command returns the exit status.
    """
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True, highlight=False)

    app = App(
        name="timebox",
        help=HELP,
        version=__version__,
        console=console,
        error_console=error_console,
        exit_on_error=False,
        print_error=False,
        result_action="return_value",
        suppress_keyboard_interrupt=False,
    )

    @app.default
    def _timebox(
        duration: Annotated[str, Parameter(help="Deadline for each attempt.")],
        *command: Annotated[
            str,
            Parameter(
                help="Command to run, followed by its arguments.",
                allow_leading_hyphen=True,
            ),
        ],
        signal: Annotated[
            str | None,
            Parameter(
                name=["--signal", "-s"],
                help="Signal to send on timeout, by name or number (default: TERM).",
            ),
        ] = None,
        kill_after: Annotated[
            str | None,
            Parameter(
                name=["--kill-after", "-k"],
                help="Also send KILL if COMMAND is still running this long "
                "after the first signal.",
            ),
        ] = None,
        retry: Annotated[
            str | None,
            Parameter(
                name=["--retry", "-r"],
                help="Retry COMMAND up to this many times while it exits non-zero.",
            ),
        ] = None,
        retry_interval: Annotated[
            str | None,
            Parameter(
                name=["--retry-interval", "-i"],
                help="Wait this long between attempts (default: 1s).",
            ),
        ] = None,
        verbose: Annotated[
            bool,
            Parameter(
                name=["--verbose", "-v"],
                help="Print a line before each retry.",
            ),
        ] = False,
    ) -> int:
        """Run COMMAND with a deadline."""
        if not command:
            msg = "no command specified"
            raise UsageError(msg)

        overrides = _build_overrides(
            signal=signal,
            kill_after=kill_after,
            retry=retry,
            retry_interval=retry_interval,
        )
        settings = load_settings(environ, overrides)
        defaults = settings.defaults

        kill_after_seconds = (
            None if defaults.kill_after is None else parse_duration(defaults.kill_after)
        )
        config = SupervisorConfig.build(
            command=command,
            timeout_seconds=parse_duration(duration),
            signal=parse_signal(defaults.signal),
            kill_after_seconds=kill_after_seconds,
            retry_count=defaults.retry,
            retry_interval_seconds=parse_duration(defaults.retry_interval),
            verbose=verbose,
        )

        logger = create_logger(
            level=settings.logging.level.value,
            log_format=settings.logging.format.value,  # type: ignore[arg-type]
            log_file=settings.logging.file,
            max_bytes=settings.logging.max_bytes,
            backup_count=settings.logging.backup_count,
        )
        sink = ConsoleEventSink(error_console, verbose=verbose)

        outcome = anyio.run(partial(supervise, config, sink=sink, logger=logger))
        if isinstance(outcome, SpawnFailed):
            error_console.print(
                f"timebox: {outcome.message}", markup=False, soft_wrap=True
            )
        return outcome.exit_code

    return app


def _usage_error(error_console: Console, message: str) -> int:
    error_console.print(
        f"timebox: {message}", markup=False, highlight=False, soft_wrap=True
    )
    error_console.print(
        "Try 'timebox --help' for more information.", markup=False, highlight=False
    )
    return EXIT_USAGE_ERROR


def run_cli(
    argv: Sequence[str],
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> int:
    """Run timebox for `argv` and return the exit status.

    Args:
        argv: Arguments without the program name.
        console: Console for help and version output.
        error_console: Console for diagnostics and progress lines.
        environ: Environment for settings (defaults to ``os.environ``).

    Returns:
        The process exit status.
    """
    if error_console is None:
        error_console = Console(stderr=True, highlight=False)
    app = create_app(console, error_console, environ=environ)

    try:
        line = split_command_line(argv)
        if line.duration is None and not line.wants_info:
            msg = "duration not specified"
            raise UsageError(msg)
        result = app(line.to_tokens())
    except (UsageError, CycloptsError) as e:
        return _usage_error(error_console, str(e))
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED

    return result if isinstance(result, int) else EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> None:
    """Default entrypoint for the `timebox` CLI."""
    raise SystemExit(run_cli(sys.argv[1:] if argv is None else argv))
