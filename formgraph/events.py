"""Observer notifications for form transactions.

The runtime emits a typed FormEvent for every applied mutation, for every
committed transaction, for each refresh marker and for each queued remote
write. Views subscribe through an EventEmitter to learn when they need to
re-read the store.
"""

from dataclasses import dataclass
from datetime import datetime
import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, TextIO

from dateutil.parser import isoparse

from .types import EventType, Ident

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormEvent:
    """A single notification emitted by the form runtime.

    Attributes:
        event_id: Unique event identifier (e.g., "evt_01H8...")
        type: Event type from EventType enum
        ts: UTC timestamp when the event occurred
        ident: Optional - the form the event relates to
        payload: Optional event-specific data (mutation name, refresh key, ...)

    Examples:
        >>> from datetime import datetime, timezone
        >>> event = FormEvent(
        ...     event_id="evt_001",
        ...     type=EventType.MUTATION_APPLIED,
        ...     ts=datetime.now(timezone.utc),
        ...     ident=Ident("person", 1),
        ...     payload={"mutation": "forms/update-field"},
        ... )
    """
    event_id: str
    type: EventType
    ts: datetime
    ident: Optional[Ident] = None
    payload: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        # Convert string type to EventType enum if needed
        if isinstance(self.type, str):
            object.__setattr__(self, "type", EventType(self.type))

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization.

        Timestamp is formatted as ISO 8601 string.
        """
        result: Dict[str, Any] = {
            "eventId": self.event_id,
            "type": self.type.value,
            "ts": self.ts.isoformat(),
        }
        if self.ident is not None:
            result["ident"] = self.ident.to_dict()
        if self.payload is not None:
            result["payload"] = self.payload
        return result

    def to_jsonl(self) -> str:
        """Convert event to a single line of JSON.

        Payload values JSON cannot represent are written with str().
        """
        return json.dumps(self.to_dict(), separators=(',', ':'), default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormEvent":
        """Create FormEvent from dictionary (camelCase keys)."""
        ident = data.get("ident")
        return cls(
            event_id=data["eventId"],
            type=EventType(data["type"]),
            ts=isoparse(data["ts"]),
            ident=Ident.from_dict(ident) if ident is not None else None,
            payload=data.get("payload"),
        )


EventListener = Callable[[FormEvent], None]
"""Type alias for event listener callbacks.

Listeners are called synchronously when events are emitted.
"""


class EventEmitter:
    """Dispatches FormEvents to subscribed listeners.

    Features:
    - Type-specific subscriptions
    - Wildcard subscriptions (all events)
    - Synchronous dispatch in registration order
    - Error isolation: a failing listener is logged and does not stop the others

    Examples:
        >>> emitter = EventEmitter()
        >>> seen = []
        >>> emitter.on(EventType.REFRESH_REQUESTED, seen.append)
        >>> emitter.listener_count()
        1
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[EventListener]] = {}
        self._any_listeners: List[EventListener] = []

    def on(self, event_type: EventType, listener: EventListener) -> None:
        """Subscribe to a specific event type."""
        self._listeners.setdefault(event_type, []).append(listener)

    def on_any(self, listener: EventListener) -> None:
        """Subscribe to all event types."""
        self._any_listeners.append(listener)

    def off(self, event_type: EventType, listener: EventListener) -> None:
        """Unsubscribe from a specific event type. Unknown listeners are ignored."""
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def off_any(self, listener: EventListener) -> None:
        """Unsubscribe from the wildcard subscription."""
        if listener in self._any_listeners:
            self._any_listeners.remove(listener)

    def emit(self, event: FormEvent) -> None:
        """Dispatch an event: type-specific listeners first, then wildcard ones."""
        for listener in list(self._listeners.get(event.type, [])) + list(self._any_listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %r failed on %s event", listener, event.type.value)

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners.clear()
        self._any_listeners.clear()

    def listener_count(self, event_type: Optional[EventType] = None) -> int:
        """Count listeners for one type, or all listeners when event_type is None."""
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return len(self._any_listeners) + sum(len(l) for l in self._listeners.values())


class JsonlJournal:
    """Event listener that appends every event to a text stream as JSONL.

    FormRuntime attaches one when it is given a journal stream, so the
    stream ends up holding the history of every transaction. read_journal
    turns such a stream back into FormEvents.

    Examples:
        >>> import io
        >>> stream = io.StringIO()
        >>> emitter = EventEmitter()
        >>> emitter.on_any(JsonlJournal(stream))
    """

    def __init__(self, stream: TextIO):
        self.stream = stream

    def __call__(self, event: FormEvent) -> None:
        self.stream.write(event.to_jsonl() + "\n")


def read_journal(lines: Iterable[str]) -> List[FormEvent]:
    """Parse JSONL lines written by JsonlJournal. Blank lines are skipped."""
    return [FormEvent.from_dict(json.loads(line)) for line in lines if line.strip()]


__all__ = [
    "FormEvent",
    "EventType",
    "EventListener",
    "EventEmitter",
    "JsonlJournal",
    "read_journal",
]
