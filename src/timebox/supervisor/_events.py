"""Event emission shared by the racer, orchestrator and supervisor."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, final

from ._models import SupervisorEvent, SupervisorEventType

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._protocol import EventSink


def get_timestamp() -> str:
    """Get current timestamp in ISO 8601 format."""
    return datetime.now(UTC).isoformat()


@final
class EventEmitter:
    """Builds SupervisorEvents and forwards them to an optional sink."""

    __slots__ = ("_logger", "_sink")

    def __init__(
        self,
        sink: "EventSink | None",  # noqa: UP037
        logger: "FilteringBoundLogger",  # noqa: UP037
    ) -> None:
        self._sink = sink
        self._logger = logger

    async def emit(
        self,
        event_type: SupervisorEventType,
        *,
        attempt: int,
        pid: int | None = None,
        exit_code: int | None = None,
        message: str | None = None,
    ) -> None:
        """Emit a lifecycle event to the sink.

        Args:
            event_type: Type of event to emit.
            attempt: 0-based index of the attempt the event belongs to.
            pid: Process ID if applicable.
            exit_code: Exit code if the process terminated.
            message: Optional message for the event.
        """
        if self._sink is None:
            return

        event = SupervisorEvent(
            event_type=event_type,
            attempt=attempt,
            timestamp=get_timestamp(),
            pid=pid,
            exit_code=exit_code,
            message=message,
        )
        try:
            await self._sink.write_event(event)
        except Exception as e:  # noqa: BLE001
            # Sink errors must not affect supervision
            self._logger.debug(
                "event_sink_failed", event_type=event_type.value, error=str(e)
            )
