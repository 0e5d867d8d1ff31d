"""
GLC Event Store - Event Type Registry
=====================================
Controls which event types may be recorded.
Free-text event types are forbidden.

Rules:
- Registry starts EMPTY
- Engines register their types at bootstrap
- The event log rejects any unregistered event type
- Format: engine.domain.action (e.g. ledger.transfer.completed.v1)
"""

from threading import Lock


class EventTypeRegistry:
    """
    In-memory registry of permitted event types.
    Thread-safe for concurrent registration and lookup.
    """

    def __init__(self):
        self._registered_types: set[str] = set()
        self._lock = Lock()

    def register(self, event_type: str, *args, **kwargs) -> None:
        """
        Register a permitted event type.

        Extra arguments (payload builders) are accepted and ignored so
        engines can hand over their builder tables unchanged.
        """
        if not event_type or not isinstance(event_type, str):
            raise ValueError("Event type must be a non-empty string.")

        parts = event_type.strip().split(".")
        if len(parts) < 3:
            raise ValueError(
                f"Event type '{event_type}' does not follow "
                f"engine.domain.action format."
            )

        with self._lock:
            self._registered_types.add(event_type)

    def is_registered(self, event_type: str) -> bool:
        with self._lock:
            return event_type in self._registered_types

    def get_all_registered(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._registered_types)

    def count(self) -> int:
        with self._lock:
            return len(self._registered_types)
