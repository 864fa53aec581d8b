"""
In-process event bus.

Handlers are registered per event type and receive a `Subscription` handle
that removes them again. Publishing snapshots the handler list under the lock
and invokes handlers outside it, so the bus can be shared between request
threads and background tasks.
"""

import logging
from threading import Lock
from typing import Callable, Dict, List, Type

from apphub.events.domain_events import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class Subscription:
    def __init__(self, bus: "EventBus", event_type: Type[DomainEvent], handler: EventHandler):
        self._bus = bus
        self.event_type = event_type
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self._bus._remove(self.event_type, self.handler)
        self.active = False


class EventBus:
    def __init__(self) -> None:
        self._lock = Lock()
        self._subscribers: Dict[Type[DomainEvent], List[EventHandler]] = {}

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> Subscription:
        with self._lock:
            self._subscribers.setdefault(event_type, []).append(handler)
        logger.debug(
            "Subscribed handler %s to %s",
            getattr(handler, "__name__", repr(handler)),
            event_type.__name__,
        )
        return Subscription(self, event_type, handler)

    def _remove(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        with self._lock:
            handlers = self._subscribers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)
            if not handlers:
                self._subscribers.pop(event_type, None)

    def subscriber_count(self, event_type: Type[DomainEvent]) -> int:
        with self._lock:
            return len(self._subscribers.get(event_type, []))

    def publish(self, event: DomainEvent) -> None:
        logger.debug("Publishing event: %s (ID: %s)", event.event_type, event.event_id)

        with self._lock:
            handlers = list(self._subscribers.get(type(event), []))
            if type(event) is not DomainEvent:
                handlers.extend(
                    h for h in self._subscribers.get(DomainEvent, []) if h not in handlers
                )

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    "Event handler %s for %s failed: %s",
                    getattr(handler, "__name__", repr(handler)),
                    type(event).__name__,
                    e,
                    exc_info=True,
                )
