"""
GLC Event Store - Persistence Results and Errors
================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


class PersistRejectionCode:
    UNREGISTERED_EVENT_TYPE = "UNREGISTERED_EVENT_TYPE"
    DUPLICATE_EVENT = "DUPLICATE_EVENT"
    LEDGER_MISMATCH = "LEDGER_MISMATCH"
    MISSING_FIELD = "MISSING_FIELD"


@dataclass(frozen=True)
class PersistResult:
    """
    Result of persist_event().

    accepted=True carries the stamped event (sequence + hashes).
    accepted=False carries a code and message; nothing was recorded.
    """

    accepted: bool
    event: dict = field(default_factory=dict)
    code: Optional[str] = None
    message: str = ""

    def __post_init__(self):
        if not self.accepted and not self.code:
            raise ValueError("Rejected persist result must carry a code.")


class EventPersistenceError(Exception):
    """
    The event log refused an event for an accepted command.

    Raised by engine services before any projection change, so the
    command has no effect.
    """

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")
