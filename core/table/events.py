"""Table events for observers of a table collection."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable


class EventType(Enum):
    """Types of table events."""

    # Collection events
    TABLE_CREATED = auto()
    TABLE_REMOVED = auto()

    # Deck events
    DECK_LOAD_STARTED = auto()
    DECK_LOADED = auto()
    DECK_LOAD_FAILED = auto()
    DEALER_DECK_RESET = auto()

    # Hand events
    PLAYER_DREW = auto()
    DEALER_DREW = auto()
    BOTH_DREW = auto()
    HAND_CHECKED = auto()
    HAND_CLEARED = auto()
    TABLE_RESET = auto()
    INPUT_UPDATED = auto()

    # Signals
    DECK_EXHAUSTED = auto()


@dataclass(frozen=True)
class TableEvent:
    """
    Immutable table event.

    Events tell observers (the websocket layer, tests) that a new collection
    snapshot is available and what produced it.
    """

    event_type: EventType
    table_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.event_type.name}[{self.table_id}]: {self.data}"


# Type alias for event handlers
EventHandler = Callable[[TableEvent], None]


class EventEmitter:
    """
    Simple event emitter for table events.

    Allows subscribing to specific event types or all events.
    """

    def __init__(self, history_size: int = 100) -> None:
        """Initialize the event emitter, keeping the last ``history_size`` events."""
        self._handlers: dict[EventType | None, list[EventHandler]] = {}
        self._event_history: deque[TableEvent] = deque(maxlen=history_size)

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """
        Subscribe to events.

        Args:
            handler: Function to call when event occurs
            event_type: Specific event type to subscribe to, or None for all events
        """
        self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: TableEvent) -> None:
        """Emit an event to type-specific then catch-all subscribers."""
        self._event_history.append(event)

        for handler in list(self._handlers.get(event.event_type, [])):
            handler(event)

        for handler in list(self._handlers.get(None, [])):
            handler(event)

    def emit_new(
        self,
        event_type: EventType,
        table_id: str | None = None,
        **data: Any,
    ) -> TableEvent:
        """
        Create and emit a new event.

        Args:
            event_type: Type of event
            table_id: Table the event concerns
            **data: Event data

        Returns:
            The created event
        """
        event = TableEvent(event_type=event_type, table_id=table_id, data=data)
        self.emit(event)
        return event

    @property
    def history(self) -> list[TableEvent]:
        """Return the event history."""
        return list(self._event_history)

    def clear_history(self) -> None:
        """Clear the event history."""
        self._event_history.clear()
