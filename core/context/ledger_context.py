"""
GLC Context - LedgerContext
===========================
Immutable, minimal ledger context for command validation.

A process may host several ledgers; every command names the ledger
it targets and the validator refuses commands for any other ledger.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class LedgerContext:
    """
    Canonical ledger context used by validators.

    ledger_id is mandatory.
    active=False means the ledger refuses all commands.
    """

    ledger_id: uuid.UUID
    active: bool = True

    def __post_init__(self):
        if not isinstance(self.ledger_id, uuid.UUID):
            raise ValueError("ledger_id must be UUID.")

    def has_active_context(self) -> bool:
        return self.active

    def get_active_ledger_id(self) -> Optional[uuid.UUID]:
        if not self.active:
            return None
        return self.ledger_id
