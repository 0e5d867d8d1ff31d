"""
GLC Command Layer - Command Base Contract
=========================================
Every ledger mutation begins as a Command.

A Command is a frozen, auditable declaration of intent.
It carries identity, ledger, and payload. Nothing else.

Rules:
- Immutable once created (frozen dataclass)
- No ledger logic inside
- No event emission
- command_type must end with '.request'
- command_type follows engine.domain.action.request format

A Command is NOT an event. It is intent awaiting judgment.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.identity.requirements import (
    ADMIN_REQUIRED,
    VALID_AUTHORITY_REQUIREMENTS,
)


# ══════════════════════════════════════════════════════════════
# CANONICAL COMMAND
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Command:
    """
    Canonical GLC Command - declaration of ledger intent.

    Fields:
        command_id:     Unique identifier (UUID).
        command_type:   Namespaced type ending in '.request'
                        (e.g. 'ledger.transfer.execute.request').
        ledger_id:      Ledger boundary (UUID).
        actor_id:       Authenticated identity of the caller (address).
        payload:        Intent data (dict).
        issued_at:      When the command was issued.
        correlation_id: Groups related commands/events in a story.
        source_engine:  Engine that originates this command.
        authority_requirement:
                        ADMIN_REQUIRED or HOLDER_ALLOWED.

    Example:
        Command(
            command_id=uuid.uuid4(),
            command_type="ledger.transfer.execute.request",
            ledger_id=uuid.UUID("..."),
            actor_id="0xalice",
            payload={"recipient": "0xbob", "amount": 10},
            issued_at=datetime.now(timezone.utc),
            correlation_id=uuid.uuid4(),
            source_engine="ledger",
            authority_requirement=HOLDER_ALLOWED,
        )
    """

    command_id: uuid.UUID
    command_type: str
    ledger_id: uuid.UUID
    actor_id: str
    payload: dict
    issued_at: datetime
    correlation_id: uuid.UUID
    source_engine: str
    authority_requirement: str = ADMIN_REQUIRED

    def __post_init__(self):
        # ── command_id must be UUID ───────────────────────────
        if not isinstance(self.command_id, uuid.UUID):
            raise ValueError(
                f"command_id must be UUID, got {type(self.command_id).__name__}"
            )

        # ── command_type must end with .request ───────────────
        if not self.command_type or not isinstance(self.command_type, str):
            raise ValueError("command_type must be a non-empty string.")

        if not self.command_type.endswith(".request"):
            raise ValueError(
                f"command_type '{self.command_type}' must end with "
                f"'.request' (e.g. 'ledger.transfer.execute.request')."
            )

        # ── command_type minimum 4 segments ───────────────────
        parts = self.command_type.split(".")
        if len(parts) < 4:
            raise ValueError(
                f"command_type '{self.command_type}' must follow "
                f"engine.domain.action.request format (minimum 4 segments)."
            )

        # ── source_engine must match first segment ────────────
        if parts[0] != self.source_engine:
            raise ValueError(
                f"command_type namespace '{parts[0]}' does not match "
                f"source_engine '{self.source_engine}'."
            )

        # ── ledger_id must be UUID ────────────────────────────
        if not isinstance(self.ledger_id, uuid.UUID):
            raise ValueError("ledger_id must be UUID.")

        # ── authority requirement must be valid ───────────────
        if self.authority_requirement not in VALID_AUTHORITY_REQUIREMENTS:
            raise ValueError(
                f"authority_requirement '{self.authority_requirement}' "
                f"not valid. Must be one of: "
                f"{sorted(VALID_AUTHORITY_REQUIREMENTS)}"
            )

        # ── actor_id must be non-empty ────────────────────────
        if not self.actor_id or not isinstance(self.actor_id, str):
            raise ValueError("actor_id must be a non-empty string.")

        # ── payload must be dict ──────────────────────────────
        if not isinstance(self.payload, dict):
            raise TypeError("payload must be a dict.")

        # ── correlation_id must be UUID ───────────────────────
        if not isinstance(self.correlation_id, uuid.UUID):
            raise ValueError("correlation_id must be UUID.")


def build_command(
    command_data: dict,
    *,
    command_id: Optional[uuid.UUID] = None,
    correlation_id: Optional[uuid.UUID] = None,
) -> Command:
    """
    Build a Command from a request's to_command() dict.

    A fresh command_id is minted when none is given; the
    correlation_id defaults to the command_id (first in its story).
    """
    command_id = command_id or uuid.uuid4()
    return Command(
        command_id=command_id,
        command_type=command_data["command_type"],
        ledger_id=command_data["ledger_id"],
        actor_id=command_data["actor_id"],
        payload=dict(command_data["payload"]),
        issued_at=command_data["issued_at"],
        correlation_id=correlation_id or command_id,
        source_engine=command_data["source_engine"],
        authority_requirement=command_data.get(
            "authority_requirement", ADMIN_REQUIRED
        ),
    )


# ══════════════════════════════════════════════════════════════
# NAMING HELPERS
# ══════════════════════════════════════════════════════════════

def derive_rejection_event_type(command_type: str) -> str:
    """
    Derive the rejection label for a command type.

    ledger.transfer.execute.request → ledger.transfer.execute.rejected

    Rule: Strip '.request', append '.rejected'. Used in logs and
    rejection records; rejected commands never reach the event log.
    """
    if not command_type.endswith(".request"):
        raise ValueError(
            f"Cannot derive rejection event type from "
            f"'{command_type}': must end with '.request'."
        )

    base = command_type[: -len(".request")]
    return f"{base}.rejected"


def derive_source_engine(command_type: str) -> str:
    """
    Extract source engine from command type.

    ledger.transfer.execute.request → ledger
    """
    return command_type.split(".")[0]
