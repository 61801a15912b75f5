from collections.abc import Callable

import pytest
from rich.console import Console

from timebox.cli import CommandLine, run_cli, split_command_line
from timebox.exceptions import UsageError


@pytest.fixture
def timebox_cli(console: Console) -> Callable[..., int]:
    """Run the CLI against an empty environment and return the exit status."""

    def _run(*args: str) -> int:
        return run_cli(args, console=console, error_console=console, environ={})

    return _run


class TestSplitCommandLine:
    def test_duration_and_command(self) -> None:
        line = split_command_line(["5", "echo", "hello"])
        assert line == CommandLine(duration="5", command=("echo", "hello"))

    def test_child_flags_are_not_parsed(self) -> None:
        line = split_command_line(["-v", "10s", "ls", "-v", "--signal", "x"])

        assert line.options == ("--verbose",)
        assert line.duration == "10s"
        assert line.command == ("ls", "-v", "--signal", "x")

    def test_value_options_in_every_spelling(self) -> None:
        line = split_command_line(
            ["-s", "KILL", "--kill-after", "2s", "-r3", "--retry-interval=1s", "5", "true"]
        )

        assert line.options == (
            "--signal=KILL",
            "--kill-after=2s",
            "--retry=3",
            "--retry-interval=1s",
        )

    def test_double_dash_ends_options(self) -> None:
        line = split_command_line(["-v", "--", "5", "-x"])
        assert line.duration == "5"
        assert line.command == ("-x",)

    def test_missing_duration(self) -> None:
        line = split_command_line(["--verbose"])
        assert line.duration is None
        assert line.to_tokens() == ["--verbose"]

    def test_tokens_put_operands_after_delimiter(self) -> None:
        line = split_command_line(["-k", "1", "5", "sh", "-c", "exit 3"])
        assert line.to_tokens() == ["--kill-after=1", "--", "5", "sh", "-c", "exit 3"]

    @pytest.mark.parametrize("flag", ["-h", "--help", "--version"])
    def test_info_flags(self, flag: str) -> None:
        assert split_command_line([flag]).wants_info

    def test_unknown_option(self) -> None:
        with pytest.raises(UsageError, match="unrecognized option '--unknown-option'"):
            _ = split_command_line(["--unknown-option", "5", "true"])

    def test_option_missing_value(self) -> None:
        with pytest.raises(UsageError, match="option '--signal' requires an argument"):
            _ = split_command_line(["--signal"])

    def test_flag_with_value(self) -> None:
        with pytest.raises(UsageError, match="doesn't allow an argument"):
            _ = split_command_line(["--verbose=yes", "5", "true"])


class TestUsageErrors:
    @pytest.mark.parametrize(
        ("args", "message"),
        [
            ((), "duration not specified"),
            (("5",), "no command specified"),
            (("abc", "echo"), "invalid duration 'abc'"),
            (("5x", "echo"), "invalid time suffix 'x'"),
            (("--unknown-option", "5", "echo"), "unrecognized option"),
            (("--retry", "abc", "5", "echo"), "invalid retry count 'abc'"),
            (("--retry", "-1", "5", "echo"), "invalid retry count '-1'"),
            (("--signal", "NOPE", "5", "echo"), "invalid signal 'NOPE'"),
            (("--kill-after", "soon", "5", "echo"), "invalid duration 'soon'"),
            (("-i", "1x", "5", "echo"), "invalid time suffix 'x'"),
        ],
    )
    def test_exit_125_with_diagnostic(
        self,
        timebox_cli: Callable[..., int],
        capsys: pytest.CaptureFixture[str],
        args: tuple[str, ...],
        message: str,
    ) -> None:
        exit_code = timebox_cli(*args)

        out = capsys.readouterr().out
        assert exit_code == 125
        assert f"timebox: {message}" in out
        assert "Try 'timebox --help' for more information." in out

    @pytest.mark.parametrize(
        "args",
        [
            ("1" + "0" * 400, "true"),
            ("1" * 5000, "true"),
            ("--kill-after", "1" + "0" * 400, "5", "true"),
            ("--retry-interval", "9" * 5000, "5", "true"),
        ],
    )
    def test_oversized_durations_exit_125(
        self,
        timebox_cli: Callable[..., int],
        capsys: pytest.CaptureFixture[str],
        args: tuple[str, ...],
    ) -> None:
        exit_code = timebox_cli(*args)

        out = capsys.readouterr().out
        assert exit_code == 125
        assert "timebox: " in out
        assert "Traceback" not in out

    def test_unconvertible_retry_count(
        self, timebox_cli: Callable[..., int], capsys: pytest.CaptureFixture[str]
    ) -> None:
        exit_code = timebox_cli("--retry", "9" * 5000, "5", "true")

        assert exit_code == 125
        assert "timebox: invalid retry count" in capsys.readouterr().out

    def test_invalid_environment_setting(
        self, console: Console, capsys: pytest.CaptureFixture[str]
    ) -> None:
        exit_code = run_cli(
            ["5", "true"],
            console=console,
            error_console=console,
            environ={"TIMEBOX_DEFAULTS__RETRY": "lots"},
        )

        assert exit_code == 125
        assert "TIMEBOX_DEFAULTS__RETRY" in capsys.readouterr().out


class TestInfo:
    @pytest.mark.parametrize("flag", ["-h", "--help"])
    def test_help(
        self,
        timebox_cli: Callable[..., int],
        capsys: pytest.CaptureFixture[str],
        flag: str,
    ) -> None:
        exit_code = timebox_cli(flag)

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "DURATION" in out
        assert "--kill-after" in out
        assert "124" in out

    def test_version(
        self, timebox_cli: Callable[..., int], capsys: pytest.CaptureFixture[str]
    ) -> None:
        from timebox import __version__

        exit_code = timebox_cli("--version")

        assert exit_code == 0
        assert __version__ in capsys.readouterr().out
