"""Event sink implementations for the supervisor.

This module provides concrete implementations of the EventSink protocol:
- ConsoleEventSink: Progress lines on stderr
- RecordingEventSink: Keeps events in memory
"""

from typing import final

from rich.console import Console
from rich.style import Style
from rich.text import Text

from ._models import SupervisorEvent, SupervisorEventType


@final
class ConsoleEventSink:
    """Event sink that writes supervisor progress to stderr.

    Retry lines are printed verbatim (``Retry 1/3 after 1s...``) so scripts
    scraping them keep working. In verbose mode, timeouts, kills and
    interrupts are printed too, dimmed and prefixed with ``timebox:``.
    Attempt start and normal exit are never printed; stdout and stderr
    belong to the command.
    """

    __slots__ = ("_console", "_event_styles", "_verbose")

    def __init__(
        self, console: Console | None = None, *, verbose: bool = False
    ) -> None:
        """Initialize the event sink.

        Args:
            console: Rich Console for output. If None, writes to stderr.
            verbose: Also print timeout, kill and interrupt events.
        """
        self._console = console or Console(stderr=True, highlight=False)
        self._verbose = verbose
        self._event_styles: dict[SupervisorEventType, Style] = {
            SupervisorEventType.TIMED_OUT: Style(color="yellow"),
            SupervisorEventType.KILLED: Style(color="red", bold=True),
            SupervisorEventType.INTERRUPTED: Style(color="magenta"),
        }

    async def write_event(self, event: SupervisorEvent) -> None:
        """Print the event if it is one the console shows.

        Args:
            event: The lifecycle event to record.
        """
        if event.event_type == SupervisorEventType.RETRYING:
            self._console.print(
                event.message or "", markup=False, highlight=False, soft_wrap=True
            )
            return

        style = self._event_styles.get(event.event_type)
        if style is None or not self._verbose or not event.message:
            return

        text = Text()
        _ = text.append("timebox: ", style=Style(dim=True))
        _ = text.append(event.message, style=style)
        self._console.print(text, soft_wrap=True)


@final
class RecordingEventSink:
    """Event sink that keeps every event in memory.

    Useful when embedding the supervisor and inspecting what happened after
    the fact.
    """

    __slots__ = ("events",)

    def __init__(self) -> None:
        self.events: list[SupervisorEvent] = []

    async def write_event(self, event: SupervisorEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: SupervisorEventType) -> list[SupervisorEvent]:
        """Return the recorded events of one type, in order."""
        return [event for event in self.events if event.event_type == event_type]
