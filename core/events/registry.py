"""
GLC Event Bus - Subscriber Registry
===================================
Controls which external observers receive which ledger events.

This is NOT the EventTypeRegistry from core.event_store.
That registry controls which types can be RECORDED.
This registry controls which handlers LISTEN to recorded events.

Rules:
- Event types must follow engine.domain.action format
- Multiple subscribers per event type allowed
- Duplicate handler for same event type forbidden
- Self-subscription (engine listens to own events) blocked unless explicit
- In-memory only
- Thread-safe
"""

import logging
from threading import Lock
from typing import Callable, Iterable

from core.events.errors import (
    DuplicateSubscriberError,
    EventBusError,
    InvalidEventTypeFormat,
    SelfSubscriptionError,
)

logger = logging.getLogger("glc.events")


class SubscriberRegistry:
    """
    In-memory registry of event subscribers.

    Each entry maps an event_type to a list of
    (handler, subscriber_name) tuples.
    """

    def __init__(self):
        self._subscribers: dict[str, list[tuple[Callable, str]]] = {}
        self._lock = Lock()

    @staticmethod
    def _validate_event_type_format(event_type: str) -> None:
        if not event_type or not isinstance(event_type, str):
            raise InvalidEventTypeFormat(event_type or "")

        parts = event_type.strip().split(".")
        if len(parts) < 3:
            raise InvalidEventTypeFormat(event_type)

    def register_subscriber(
        self,
        event_type: str,
        handler: Callable,
        subscriber_name: str,
        allow_self_subscription: bool = False,
    ) -> None:
        """
        Register a handler for an event type.

        Args:
            event_type:              e.g. 'ledger.transfer.completed.v1'
            handler:                 Callable invoked with the event data
            subscriber_name:         Observer registering this handler
            allow_self_subscription: Explicit override for engine isolation

        Raises:
            InvalidEventTypeFormat:   Bad event type format
            DuplicateSubscriberError: Handler already registered
            SelfSubscriptionError:    Engine subscribing to own events
        """
        self._validate_event_type_format(event_type)

        if not callable(handler):
            raise EventBusError(
                f"Handler must be callable, got {type(handler)}."
            )

        source_engine = event_type.split(".")[0]
        if source_engine == subscriber_name and not allow_self_subscription:
            raise SelfSubscriptionError(subscriber_name, event_type)

        handler_name = getattr(handler, "__qualname__", str(handler))

        with self._lock:
            entries = self._subscribers.setdefault(event_type, [])
            for existing_handler, _ in entries:
                if existing_handler is handler:
                    raise DuplicateSubscriberError(event_type, handler_name)
            entries.append((handler, subscriber_name))

        logger.info(
            f"Subscriber registered: {handler_name} → {event_type} "
            f"(subscriber: {subscriber_name})"
        )

    def register_for_all(
        self,
        event_types: Iterable[str],
        handler: Callable,
        subscriber_name: str,
    ) -> None:
        """Register one handler for every event type given (audit logs)."""
        for event_type in event_types:
            self.register_subscriber(event_type, handler, subscriber_name)

    def get_subscribers(self, event_type: str) -> list[tuple[Callable, str]]:
        """
        Get all subscribers for an event type.
        Returns empty list if no subscribers (not an error).
        """
        with self._lock:
            return list(self._subscribers.get(event_type, []))

    def has_subscribers(self, event_type: str) -> bool:
        with self._lock:
            return bool(self._subscribers.get(event_type))

    def subscriber_count(self, event_type: str) -> int:
        with self._lock:
            return len(self._subscribers.get(event_type, []))
