"""
GLC Ledger Engine - Commands
============================
Request dataclasses for every ledger operation.

Requests validate structure only (ledger id, addresses, integer
amounts). Whether an amount is acceptable for the operation is a
ledger policy decision and is reported as a rejection, not raised.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

from core.identity.requirements import ADMIN_REQUIRED, HOLDER_ALLOWED

# ── Command Types ─────────────────────────────────────────────

TRANSFER_REQUEST = "ledger.transfer.execute.request"
TRANSFER_FROM_REQUEST = "ledger.transfer.delegate.request"
APPROVE_REQUEST = "ledger.allowance.approve.request"
MINT_REQUEST = "ledger.supply.mint.request"
BURN_REQUEST = "ledger.supply.burn.request"
BLACKLIST_ADD_REQUEST = "ledger.blacklist.add.request"
BLACKLIST_REMOVE_REQUEST = "ledger.blacklist.remove.request"
WHITELIST_ENABLE_REQUEST = "ledger.whitelist.enable.request"
WHITELIST_DISABLE_REQUEST = "ledger.whitelist.disable.request"
WHITELIST_ADD_REQUEST = "ledger.whitelist.add.request"
WHITELIST_REMOVE_REQUEST = "ledger.whitelist.remove.request"
WHITELIST_BATCH_ADD_REQUEST = "ledger.whitelist.batch_add.request"
WHITELIST_BATCH_REMOVE_REQUEST = "ledger.whitelist.batch_remove.request"
BALANCE_BLOCK_REQUEST = "ledger.balance.block.request"
BALANCE_UNBLOCK_REQUEST = "ledger.balance.unblock.request"

HOLDER_COMMAND_TYPES = frozenset({
    TRANSFER_REQUEST,
    TRANSFER_FROM_REQUEST,
    APPROVE_REQUEST,
    BURN_REQUEST,
})

ADMIN_COMMAND_TYPES = frozenset({
    MINT_REQUEST,
    BLACKLIST_ADD_REQUEST,
    BLACKLIST_REMOVE_REQUEST,
    WHITELIST_ENABLE_REQUEST,
    WHITELIST_DISABLE_REQUEST,
    WHITELIST_ADD_REQUEST,
    WHITELIST_REMOVE_REQUEST,
    WHITELIST_BATCH_ADD_REQUEST,
    WHITELIST_BATCH_REMOVE_REQUEST,
    BALANCE_BLOCK_REQUEST,
    BALANCE_UNBLOCK_REQUEST,
})

LEDGER_COMMAND_TYPES = HOLDER_COMMAND_TYPES | ADMIN_COMMAND_TYPES


# ── Structural validation helpers ─────────────────────────────

def validate_address(value, field_name: str) -> None:
    """Addresses are opaque, non-empty strings without whitespace."""
    if not isinstance(value, str) or not value:
        raise ValueError(f"{field_name} must be a non-empty string.")
    if value != value.strip() or any(ch.isspace() for ch in value):
        raise ValueError(f"{field_name} must not contain whitespace.")


def validate_amount_type(value, field_name: str = "amount") -> None:
    # bool is an int subclass; True is not an amount.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(
            f"{field_name} must be int, got {type(value).__name__}."
        )


def _validate_common(request) -> None:
    if not isinstance(request.ledger_id, uuid.UUID):
        raise ValueError("ledger_id must be UUID.")
    validate_address(request.actor_id, "actor_id")
    if not isinstance(request.issued_at, datetime):
        raise ValueError("issued_at must be a datetime.")


def _envelope(request, command_type: str, authority: str, payload: dict) -> dict:
    return {
        "command_type": command_type,
        "ledger_id": request.ledger_id,
        "source_engine": request.source_engine,
        "actor_id": request.actor_id,
        "issued_at": request.issued_at,
        "authority_requirement": authority,
        "payload": payload,
    }


# ══════════════════════════════════════════════════════════════
# HOLDER REQUESTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TransferRequest:
    """Move units from the caller's balance to a recipient."""
    ledger_id: uuid.UUID
    actor_id: str
    recipient: str
    amount: int
    issued_at: datetime
    source_engine: str = "ledger"

    def __post_init__(self):
        _validate_common(self)
        validate_address(self.recipient, "recipient")
        validate_amount_type(self.amount)

    def to_command(self) -> dict:
        return _envelope(self, TRANSFER_REQUEST, HOLDER_ALLOWED, {
            "sender": self.actor_id,
            "recipient": self.recipient,
            "amount": self.amount,
        })


@dataclass(frozen=True)
class TransferFromRequest:
    """Spender (the caller) moves units out of an owner's balance."""
    ledger_id: uuid.UUID
    actor_id: str
    owner: str
    recipient: str
    amount: int
    issued_at: datetime
    source_engine: str = "ledger"

    def __post_init__(self):
        _validate_common(self)
        validate_address(self.owner, "owner")
        validate_address(self.recipient, "recipient")
        validate_amount_type(self.amount)

    def to_command(self) -> dict:
        return _envelope(self, TRANSFER_FROM_REQUEST, HOLDER_ALLOWED, {
            "spender": self.actor_id,
            "sender": self.owner,
            "recipient": self.recipient,
            "amount": self.amount,
        })


@dataclass(frozen=True)
class ApproveRequest:
    """Set the delegated spending allowance of a spender (overwrite)."""
    ledger_id: uuid.UUID
    actor_id: str
    spender: str
    amount: int
    issued_at: datetime
    source_engine: str = "ledger"

    def __post_init__(self):
        _validate_common(self)
        validate_address(self.spender, "spender")
        validate_amount_type(self.amount)

    def to_command(self) -> dict:
        return _envelope(self, APPROVE_REQUEST, HOLDER_ALLOWED, {
            "owner": self.actor_id,
            "spender": self.spender,
            "amount": self.amount,
        })


@dataclass(frozen=True)
class BurnRequest:
    """Caller destroys units of its own balance."""
    ledger_id: uuid.UUID
    actor_id: str
    amount: int
    issued_at: datetime
    source_engine: str = "ledger"

    def __post_init__(self):
        _validate_common(self)
        validate_amount_type(self.amount)

    def to_command(self) -> dict:
        return _envelope(self, BURN_REQUEST, HOLDER_ALLOWED, {
            "holder": self.actor_id,
            "amount": self.amount,
        })


# ══════════════════════════════════════════════════════════════
# ADMINISTRATOR REQUESTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class MintRequest:
    ledger_id: uuid.UUID
    actor_id: str
    recipient: str
    amount: int
    issued_at: datetime
    source_engine: str = "ledger"

    def __post_init__(self):
        _validate_common(self)
        validate_address(self.recipient, "recipient")
        validate_amount_type(self.amount)

    def to_command(self) -> dict:
        return _envelope(self, MINT_REQUEST, ADMIN_REQUIRED, {
            "recipient": self.recipient,
            "amount": self.amount,
        })


@dataclass(frozen=True)
class BlacklistRequest:
    """Set (listed=True) or clear (listed=False) the blacklist flag."""
    ledger_id: uuid.UUID
    actor_id: str
    account: str
    issued_at: datetime
    listed: bool = True
    source_engine: str = "ledger"

    def __post_init__(self):
        _validate_common(self)
        validate_address(self.account, "account")
        if not isinstance(self.listed, bool):
            raise ValueError("listed must be bool.")

    def to_command(self) -> dict:
        command_type = (
            BLACKLIST_ADD_REQUEST if self.listed else BLACKLIST_REMOVE_REQUEST
        )
        return _envelope(self, command_type, ADMIN_REQUIRED, {
            "account": self.account,
        })


@dataclass(frozen=True)
class WhitelistToggleRequest:
    """Enable (enabled=True) or disable (enabled=False) a whitelist."""
    ledger_id: uuid.UUID
    actor_id: str
    account: str
    issued_at: datetime
    enabled: bool = True
    source_engine: str = "ledger"

    def __post_init__(self):
        _validate_common(self)
        validate_address(self.account, "account")
        if not isinstance(self.enabled, bool):
            raise ValueError("enabled must be bool.")

    def to_command(self) -> dict:
        command_type = (
            WHITELIST_ENABLE_REQUEST if self.enabled
            else WHITELIST_DISABLE_REQUEST
        )
        return _envelope(self, command_type, ADMIN_REQUIRED, {
            "account": self.account,
        })


@dataclass(frozen=True)
class AddToWhitelistRequest:
    ledger_id: uuid.UUID
    actor_id: str
    account: str
    counterparty: str
    amount: int
    issued_at: datetime
    source_engine: str = "ledger"

    def __post_init__(self):
        _validate_common(self)
        validate_address(self.account, "account")
        validate_address(self.counterparty, "counterparty")
        validate_amount_type(self.amount)

    def to_command(self) -> dict:
        return _envelope(self, WHITELIST_ADD_REQUEST, ADMIN_REQUIRED, {
            "account": self.account,
            "counterparty": self.counterparty,
            "amount": self.amount,
        })


@dataclass(frozen=True)
class RemoveFromWhitelistRequest:
    ledger_id: uuid.UUID
    actor_id: str
    account: str
    counterparty: str
    issued_at: datetime
    source_engine: str = "ledger"

    def __post_init__(self):
        _validate_common(self)
        validate_address(self.account, "account")
        validate_address(self.counterparty, "counterparty")

    def to_command(self) -> dict:
        return _envelope(self, WHITELIST_REMOVE_REQUEST, ADMIN_REQUIRED, {
            "account": self.account,
            "counterparty": self.counterparty,
        })


@dataclass(frozen=True)
class BatchAddToWhitelistRequest:
    """Add several counterparties at once: entries = ((cp, amount), ...)."""
    ledger_id: uuid.UUID
    actor_id: str
    account: str
    entries: Tuple[Tuple[str, int], ...]
    issued_at: datetime
    source_engine: str = "ledger"

    def __post_init__(self):
        _validate_common(self)
        validate_address(self.account, "account")
        if not isinstance(self.entries, tuple):
            raise ValueError("entries must be a tuple.")
        for entry in self.entries:
            if not isinstance(entry, tuple) or len(entry) != 2:
                raise ValueError("each entry must be a (counterparty, amount) tuple.")
            validate_address(entry[0], "counterparty")
            validate_amount_type(entry[1])

    def to_command(self) -> dict:
        return _envelope(self, WHITELIST_BATCH_ADD_REQUEST, ADMIN_REQUIRED, {
            "account": self.account,
            "entries": [
                {"counterparty": cp, "amount": amount}
                for cp, amount in self.entries
            ],
        })


@dataclass(frozen=True)
class BatchRemoveFromWhitelistRequest:
    ledger_id: uuid.UUID
    actor_id: str
    account: str
    counterparties: Tuple[str, ...]
    issued_at: datetime
    source_engine: str = "ledger"

    def __post_init__(self):
        _validate_common(self)
        validate_address(self.account, "account")
        if not isinstance(self.counterparties, tuple):
            raise ValueError("counterparties must be a tuple.")
        for cp in self.counterparties:
            validate_address(cp, "counterparty")

    def to_command(self) -> dict:
        return _envelope(self, WHITELIST_BATCH_REMOVE_REQUEST, ADMIN_REQUIRED, {
            "account": self.account,
            "counterparties": list(self.counterparties),
        })


@dataclass(frozen=True)
class BlockBalanceRequest:
    """Freeze (blocked=True) or release (blocked=False) part of a balance."""
    ledger_id: uuid.UUID
    actor_id: str
    account: str
    amount: int
    issued_at: datetime
    blocked: bool = True
    source_engine: str = "ledger"

    def __post_init__(self):
        _validate_common(self)
        validate_address(self.account, "account")
        validate_amount_type(self.amount)
        if not isinstance(self.blocked, bool):
            raise ValueError("blocked must be bool.")

    def to_command(self) -> dict:
        command_type = (
            BALANCE_BLOCK_REQUEST if self.blocked else BALANCE_UNBLOCK_REQUEST
        )
        return _envelope(self, command_type, ADMIN_REQUIRED, {
            "account": self.account,
            "amount": self.amount,
        })
