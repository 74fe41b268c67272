"""Cart event notifier.

Fire-and-forget dispatch of cart events to subscribed listeners. A
failing listener is logged and skipped; it never affects the cart
operation that fired the event.
"""

from collections import defaultdict
from collections.abc import Callable

import structlog

from cartcalc.domain.base import DomainEvent
from cartcalc.domain.events import EVENT_REGISTRY

logger = structlog.get_logger()

Listener = Callable[[DomainEvent], object]

ALL_EVENTS = "*"


class EventNotifier:
    """Dispatches cart events to listeners by event type."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def subscribe(self, event_type: str, listener: Listener) -> None:
        """Register a listener.

        Args:
            event_type: One of the cart event types, or ``"*"`` for all.
            listener: Callable receiving the event.

        Raises:
            ValueError: If the event type is unknown.
        """
        if event_type != ALL_EVENTS and event_type not in EVENT_REGISTRY:
            raise ValueError(f"Unknown cart event type: {event_type}")
        self._listeners[event_type].append(listener)

    def unsubscribe(self, event_type: str, listener: Listener) -> None:
        if listener in self._listeners.get(event_type, []):
            self._listeners[event_type].remove(listener)

    def fire(self, event: DomainEvent) -> None:
        """Deliver an event to its listeners; return values are ignored."""
        listeners = [*self._listeners.get(event.event_type, []), *self._listeners.get(ALL_EVENTS, [])]
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.exception(
                    "Cart event listener failed",
                    event_type=event.event_type,
                    instance=event.instance,
                    error=str(e),
                )


# Global notifier instance
_notifier: EventNotifier | None = None


def get_event_notifier() -> EventNotifier:
    """Get event notifier singleton."""
    global _notifier
    if _notifier is None:
        _notifier = EventNotifier()
    return _notifier
