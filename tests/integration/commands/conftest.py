from collections.abc import Callable

import pytest
from rich.console import Console

from timebox.cli import run_cli


@pytest.fixture
def timebox_cli_with_exit_code(console: Console) -> Callable[..., int]:
    """Run the CLI with no TIMEBOX_ settings and return the exit status.

    Diagnostics and progress lines go to the test console, so they show up
    in captured stdout.
    """

    def _run(*args: str, environ: dict[str, str] | None = None) -> int:
        return run_cli(
            args, console=console, error_console=console, environ=environ or {}
        )

    return _run
