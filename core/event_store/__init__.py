"""
GLC Event Store - Public API
============================
Every accepted ledger mutation is recorded as exactly one event.
"""

from core.event_store.errors import (
    EventPersistenceError,
    PersistRejectionCode,
    PersistResult,
)
from core.event_store.log import InMemoryEventLog, build_event_data
from core.event_store.registry import EventTypeRegistry

__all__ = [
    "EventPersistenceError",
    "PersistRejectionCode",
    "PersistResult",
    "InMemoryEventLog",
    "build_event_data",
    "EventTypeRegistry",
]
