"""The timebox command-line interface."""

from ._app import create_app, main, run_cli
from ._split import CommandLine, split_command_line

__all__ = ["CommandLine", "create_app", "main", "run_cli", "split_command_line"]
