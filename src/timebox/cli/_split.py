"""Command-line splitting.

Everything after DURATION belongs to the supervised command, including
tokens that look like options. The splitter walks the leading options only,
so the child's own flags are never seen by the option parser.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from timebox.exceptions import UsageError

if TYPE_CHECKING:
    from collections.abc import Sequence

# Short and long spellings mapped to the canonical long name
VALUE_OPTIONS: Final[dict[str, str]] = {
    "-s": "--signal",
    "--signal": "--signal",
    "-k": "--kill-after",
    "--kill-after": "--kill-after",
    "-r": "--retry",
    "--retry": "--retry",
    "-i": "--retry-interval",
    "--retry-interval": "--retry-interval",
}

FLAG_OPTIONS: Final[dict[str, str]] = {
    "-v": "--verbose",
    "--verbose": "--verbose",
    "-h": "--help",
    "--help": "--help",
    "--version": "--version",
}

INFO_FLAGS: Final[frozenset[str]] = frozenset({"--help", "--version"})


@dataclass(frozen=True, slots=True)
class CommandLine:
    """A command line split at the duration.

    Attributes:
        options: Normalized option tokens, values attached as ``--name=value``.
        duration: The DURATION operand, or None if it is missing.
        command: The command and its arguments, untouched.
    """

    options: tuple[str, ...] = ()
    duration: str | None = None
    command: tuple[str, ...] = field(default=())

    @property
    def wants_info(self) -> bool:
        """Return True if help or version output was requested."""
        return any(token in INFO_FLAGS for token in self.options)

    def to_tokens(self) -> list[str]:
        """Return tokens for the option parser.

        Operands go after ``--`` so they are never parsed as options.
        """
        tokens = list(self.options)
        if self.duration is not None:
            tokens.append("--")
            tokens.append(self.duration)
            tokens.extend(self.command)
        return tokens


def _split_option(token: str) -> tuple[str, str | None]:
    if token.startswith("--"):
        name, sep, value = token.partition("=")
        return name, value if sep else None
    name, value = token[:2], token[2:]
    return name, value or None


def split_command_line(argv: "Sequence[str]") -> CommandLine:  # noqa: UP037
    """Split raw arguments into options, DURATION and COMMAND.

    Option parsing stops at the first operand or at ``--``.

    Args:
        argv: Arguments without the program name.

    Returns:
        The split command line.

    Raises:
        UsageError: On an unknown option or an option missing its value.
    """
    options: list[str] = []
    index = 0
    while index < len(argv):
        token = argv[index]
        if token == "--":
            index += 1
            break
        if token == "-" or not token.startswith("-"):
            break

        name, attached = _split_option(token)
        if name in FLAG_OPTIONS:
            if attached is not None:
                msg = f"option '{name}' doesn't allow an argument"
                raise UsageError(msg)
            options.append(FLAG_OPTIONS[name])
            index += 1
            continue

        canonical = VALUE_OPTIONS.get(name)
        if canonical is None:
            msg = f"unrecognized option '{token}'"
            raise UsageError(msg)

        if attached is not None:
            value = attached
            index += 1
        elif index + 1 < len(argv):
            value = argv[index + 1]
            index += 2
        else:
            msg = f"option '{name}' requires an argument"
            raise UsageError(msg)
        options.append(f"{canonical}={value}")

    operands = tuple(argv[index:])
    if not operands:
        return CommandLine(options=tuple(options))
    return CommandLine(
        options=tuple(options), duration=operands[0], command=operands[1:]
    )
