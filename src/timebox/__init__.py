"""Run a command under a deadline, with signal escalation and retries.

Example:
    >>> from timebox import SupervisorConfig, run
    >>> config = SupervisorConfig.build(timeout_seconds=5, command=("true",))
    >>> run(config).exit_code
    0
"""

__version__ = "0.1.0"

from timebox.exceptions import (  # noqa: E402
    DurationError,
    SettingsError,
    SignalNameError,
    SpawnError,
    TimeboxError,
    UsageError,
)
from timebox.supervisor import (  # noqa: E402
    Completed,
    Interrupted,
    Outcome,
    SpawnFailed,
    Supervisor,
    SupervisorConfig,
    TimedOut,
    run,
    supervise,
)

__all__ = [
    "Completed",
    "DurationError",
    "Interrupted",
    "Outcome",
    "SettingsError",
    "SignalNameError",
    "SpawnError",
    "SpawnFailed",
    "Supervisor",
    "SupervisorConfig",
    "TimeboxError",
    "TimedOut",
    "UsageError",
    "__version__",
    "run",
    "supervise",
]
