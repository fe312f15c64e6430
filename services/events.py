"""In-process publication of domain events between modules."""

import logfire

from collections import defaultdict
from typing import Callable, DefaultDict, List, Optional, Type

from pydantic import BaseModel


class UserCreatedEvent(BaseModel):
    """Published once a new user has been stored."""

    username: str
    email: Optional[str] = None


EventHandler = Callable[[BaseModel], None]


class EventPublisher:
    """Dispatches events to subscribed handlers.

    Delivery is at most once: a failing handler is logged and skipped, and the
    event is not retried.
    """

    def __init__(self):
        self._handlers: DefaultDict[Type[BaseModel], List[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: Type[BaseModel], handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    def publish(self, event: BaseModel) -> int:
        """Delivers `event` to every handler subscribed to its type.

        Args:
            event (BaseModel): The event to publish.

        Returns:
            int: Number of handlers that processed the event without error.
        """
        delivered = 0

        for handler in self._handlers.get(type(event), []):
            try:
                handler(event)
                delivered += 1
            except Exception as e:
                logfire.error(
                    f"Event handler {getattr(handler, '__name__', handler)} failed for {type(event).__name__}: {str(e)}"
                )

        return delivered


def log_user_created(event: UserCreatedEvent) -> None:
    logfire.info(f"New user registered: {event.username}")


_event_publisher: Optional[EventPublisher] = None


def get_event_publisher() -> EventPublisher:
    """Get the process-wide event publisher instance."""
    global _event_publisher

    if _event_publisher is None:
        _event_publisher = EventPublisher()
        _event_publisher.subscribe(UserCreatedEvent, log_user_created)

    return _event_publisher
