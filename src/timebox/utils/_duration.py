"""Duration string parsing.

Durations are whole seconds, optionally followed by a single unit suffix:
``s`` (seconds), ``m`` (minutes), ``h`` (hours) or ``d`` (days). Sub-second
values are not representable.
"""

import re
import threading
from typing import Final

from timebox.exceptions import DurationError

SECONDS_PER_UNIT: Final[dict[str, int]] = {
    "": 1,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
}

# Longest deadline the event loop and thread primitives accept
MAX_DURATION_SECONDS: Final[int] = int(threading.TIMEOUT_MAX)

_DURATION_PATTERN = re.compile(r"(?P<number>[0-9]*)(?P<suffix>.*)", re.DOTALL)


def parse_duration(value: str) -> int:
    """Convert a duration string to a non-negative number of seconds.

    Args:
        value: Duration such as ``"30"``, ``"30s"``, ``"5m"``, ``"2h"`` or ``"1d"``.

    Returns:
        The duration in whole seconds.

    Raises:
        DurationError: If the numeric part is missing, the suffix is unknown,
            or the result exceeds MAX_DURATION_SECONDS.

    Examples:
        >>> parse_duration("90")
        90
        >>> parse_duration("5m")
        300
    """
    match = _DURATION_PATTERN.fullmatch(value.strip())
    if match is None or not match.group("number"):
        msg = f"invalid duration '{value}'"
        raise DurationError(msg, value=value)

    suffix = match.group("suffix")
    multiplier = SECONDS_PER_UNIT.get(suffix)
    if multiplier is None:
        msg = f"invalid time suffix '{suffix}'"
        raise DurationError(msg, value=value)

    try:
        seconds = int(match.group("number")) * multiplier
    except ValueError:
        # More digits than int() converts
        msg = f"invalid duration '{value}'"
        raise DurationError(msg, value=value) from None

    if seconds > MAX_DURATION_SECONDS:
        msg = f"duration '{value}' is too large (maximum {MAX_DURATION_SECONDS}s)"
        raise DurationError(msg, value=value)
    return seconds
