"""
GLC Event Store - In-Memory Event Log
=====================================
Append-only, hash-chained record of every accepted ledger mutation.

The log:
- Refuses unregistered event types and duplicate event ids
- Stamps sequence, previous_event_hash and event_hash under its lock
- Dispatches the recorded event to subscribers after the enclosing
  unit of work commits (immediately when there is none)

The log does NOT:
- Interpret payload meaning
- Touch account state
- Record anything for rejected commands (they never reach it)
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from core.event_store.errors import PersistRejectionCode, PersistResult
from core.event_store.hashing.hasher import (
    GENESIS_HASH,
    compute_event_hash,
    hashed_body,
)
from core.event_store.hashing.verifier import ChainVerification, verify_hash_chain
from core.event_store.unit_of_work import on_commit
from core.events.dispatcher import dispatch
from core.events.registry import SubscriberRegistry

logger = logging.getLogger("glc.events")

REQUIRED_EVENT_FIELDS = (
    "event_id",
    "event_type",
    "ledger_id",
    "actor_id",
    "payload",
)


# ══════════════════════════════════════════════════════════════
# EVENT FACTORY
# ══════════════════════════════════════════════════════════════

def build_event_data(*, command, event_type: str, payload: dict) -> dict:
    """
    Build the unstamped event envelope for an accepted command.

    Chain fields (sequence, hashes) are assigned by the log at
    record time, so concurrent commands never race on them.
    """
    return {
        "event_id": uuid.uuid4(),
        "event_type": event_type,
        "event_version": 1,
        "ledger_id": command.ledger_id,
        "source_engine": command.source_engine,
        "actor_id": command.actor_id,
        "correlation_id": command.correlation_id,
        "causation_id": command.command_id,
        "payload": dict(payload),
        "created_at": datetime.now(timezone.utc),
    }


# ══════════════════════════════════════════════════════════════
# IN-MEMORY EVENT LOG
# ══════════════════════════════════════════════════════════════

class InMemoryEventLog:
    """
    Usage:
        log = InMemoryEventLog(subscriber_registry=subscribers)
        result = log(event_data=event, context=None, registry=types)
        if result.accepted:
            ...
    """

    def __init__(
        self,
        ledger_id: Optional[uuid.UUID] = None,
        subscriber_registry: Optional[SubscriberRegistry] = None,
    ):
        self._ledger_id = ledger_id
        self._subscriber_registry = subscriber_registry
        self._events: list[dict[str, Any]] = []
        self._event_ids: set = set()
        self._last_hash = GENESIS_HASH
        self._lock = threading.Lock()

    def __call__(
        self,
        event_data: dict,
        context: Any = None,
        registry: Any = None,
        **kwargs: Any,
    ) -> PersistResult:
        return self.persist_event(event_data, registry=registry)

    def persist_event(self, event_data: dict, registry: Any = None) -> PersistResult:
        for name in REQUIRED_EVENT_FIELDS:
            if name not in event_data:
                return PersistResult(
                    accepted=False,
                    code=PersistRejectionCode.MISSING_FIELD,
                    message=f"Event is missing required field '{name}'.",
                )

        event_type = event_data["event_type"]
        if registry is not None and not registry.is_registered(event_type):
            return PersistResult(
                accepted=False,
                code=PersistRejectionCode.UNREGISTERED_EVENT_TYPE,
                message=f"Event type '{event_type}' is not registered.",
            )

        if self._ledger_id is not None and event_data["ledger_id"] != self._ledger_id:
            return PersistResult(
                accepted=False,
                code=PersistRejectionCode.LEDGER_MISMATCH,
                message=(
                    f"Event ledger_id ({event_data['ledger_id']}) does not "
                    f"belong to this log ({self._ledger_id})."
                ),
            )

        with self._lock:
            if event_data["event_id"] in self._event_ids:
                return PersistResult(
                    accepted=False,
                    code=PersistRejectionCode.DUPLICATE_EVENT,
                    message=f"Event {event_data['event_id']} already recorded.",
                )

            stored = copy.deepcopy(event_data)
            stored["sequence"] = len(self._events)
            stored["previous_event_hash"] = self._last_hash
            stored["event_hash"] = compute_event_hash(
                hashed_body(stored), self._last_hash
            )

            self._events.append(stored)
            self._event_ids.add(stored["event_id"])
            self._last_hash = stored["event_hash"]

        logger.debug(
            f"Recorded {event_type} #{stored['sequence']} "
            f"(event_id: {stored['event_id']})"
        )

        if self._subscriber_registry is not None:
            published = copy.deepcopy(stored)
            subscribers = self._subscriber_registry
            on_commit(lambda: dispatch(published, subscribers))

        return PersistResult(accepted=True, event=copy.deepcopy(stored))

    # ── Queries ───────────────────────────────────────────────

    def all_events(self) -> tuple[dict[str, Any], ...]:
        with self._lock:
            return tuple(copy.deepcopy(self._events))

    def events_of_type(self, event_type: str) -> tuple[dict[str, Any], ...]:
        with self._lock:
            return tuple(
                copy.deepcopy(e) for e in self._events
                if e["event_type"] == event_type
            )

    @property
    def last_hash(self) -> str:
        with self._lock:
            return self._last_hash

    @property
    def event_count(self) -> int:
        with self._lock:
            return len(self._events)

    def verify(self) -> ChainVerification:
        return verify_hash_chain(self.all_events())
