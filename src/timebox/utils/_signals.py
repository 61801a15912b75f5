"""Signal name resolution.

Accepts the spellings users pass to ``kill``: ``TERM``, ``SIGTERM``, ``term``
or a signal number such as ``15``.
"""

import signal

from timebox.exceptions import SignalNameError


def parse_signal(value: str | int | signal.Signals) -> signal.Signals:
    """Resolve a signal name or number to a ``signal.Signals`` member.

    Args:
        value: Signal name (with or without the ``SIG`` prefix, any case),
            signal number, or an existing ``signal.Signals`` member.

    Returns:
        The matching signal.

    Raises:
        SignalNameError: If the value does not name a signal on this platform.
    """
    if isinstance(value, signal.Signals):
        return value

    raw = str(value).strip()
    if raw.lstrip("-").isdigit():
        try:
            return signal.Signals(int(raw))
        except ValueError:
            msg = f"invalid signal number '{raw}'"
            raise SignalNameError(msg, value=raw) from None

    name = raw.upper()
    if not name.startswith("SIG"):
        name = f"SIG{name}"

    try:
        return signal.Signals[name]
    except KeyError:
        msg = f"invalid signal '{raw}'"
        raise SignalNameError(msg, value=raw) from None


def signal_name(signum: int) -> str:
    """Return the short name of a signal (``TERM`` for ``SIGTERM``)."""
    try:
        return signal.Signals(signum).name.removeprefix("SIG")
    except ValueError:
        return str(signum)
