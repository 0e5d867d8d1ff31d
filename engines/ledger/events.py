"""
GLC Ledger Engine - Event Types
===============================
Access-controlled value ledger: balances, blacklist, per-sender
whitelists and blocked balances.
"""

from engines.ledger.commands import (
    APPROVE_REQUEST,
    BALANCE_BLOCK_REQUEST,
    BALANCE_UNBLOCK_REQUEST,
    BLACKLIST_ADD_REQUEST,
    BLACKLIST_REMOVE_REQUEST,
    BURN_REQUEST,
    MINT_REQUEST,
    TRANSFER_FROM_REQUEST,
    TRANSFER_REQUEST,
    WHITELIST_ADD_REQUEST,
    WHITELIST_BATCH_ADD_REQUEST,
    WHITELIST_BATCH_REMOVE_REQUEST,
    WHITELIST_DISABLE_REQUEST,
    WHITELIST_ENABLE_REQUEST,
    WHITELIST_REMOVE_REQUEST,
)

# ── Event Types ───────────────────────────────────────────────

TRANSFER_COMPLETED_V1 = "ledger.transfer.completed.v1"
SUPPLY_MINTED_V1 = "ledger.supply.minted.v1"
SUPPLY_BURNED_V1 = "ledger.supply.burned.v1"
ALLOWANCE_APPROVED_V1 = "ledger.allowance.approved.v1"
BLACKLIST_ADDED_V1 = "ledger.blacklist.added.v1"
BLACKLIST_REMOVED_V1 = "ledger.blacklist.removed.v1"
WHITELIST_ENABLED_V1 = "ledger.whitelist.enabled.v1"
WHITELIST_DISABLED_V1 = "ledger.whitelist.disabled.v1"
WHITELIST_ENTRY_ADDED_V1 = "ledger.whitelist.entry_added.v1"
WHITELIST_ENTRY_REMOVED_V1 = "ledger.whitelist.entry_removed.v1"
WHITELIST_BATCH_ADDED_V1 = "ledger.whitelist.batch_added.v1"
WHITELIST_BATCH_REMOVED_V1 = "ledger.whitelist.batch_removed.v1"
BALANCE_BLOCKED_V1 = "ledger.balance.blocked.v1"
BALANCE_UNBLOCKED_V1 = "ledger.balance.unblocked.v1"

ALL_EVENT_TYPES = (
    TRANSFER_COMPLETED_V1,
    SUPPLY_MINTED_V1,
    SUPPLY_BURNED_V1,
    ALLOWANCE_APPROVED_V1,
    BLACKLIST_ADDED_V1,
    BLACKLIST_REMOVED_V1,
    WHITELIST_ENABLED_V1,
    WHITELIST_DISABLED_V1,
    WHITELIST_ENTRY_ADDED_V1,
    WHITELIST_ENTRY_REMOVED_V1,
    WHITELIST_BATCH_ADDED_V1,
    WHITELIST_BATCH_REMOVED_V1,
    BALANCE_BLOCKED_V1,
    BALANCE_UNBLOCKED_V1,
)


# ── Payload Builders ──────────────────────────────────────────
# Each builder receives the accepted command and the facts the
# service derived while checking it (consumed allowances, released
# blocked amounts). Payloads are self-sufficient for replay.

def _transfer_completed(cmd, facts):
    p = cmd.payload
    return {
        "sender": p["sender"],
        "recipient": p["recipient"],
        "amount": p["amount"],
        "spender": p.get("spender"),
        "whitelist_allowance_consumed": facts.get(
            "whitelist_allowance_consumed", False
        ),
    }


def _supply_minted(cmd, facts):
    p = cmd.payload
    return {
        "recipient": p["recipient"],
        "amount": p["amount"],
    }


def _supply_burned(cmd, facts):
    p = cmd.payload
    return {
        "holder": p["holder"],
        "amount": p["amount"],
        "blocked_released": facts.get("blocked_released", 0),
    }


def _allowance_approved(cmd, facts):
    p = cmd.payload
    return {
        "owner": p["owner"],
        "spender": p["spender"],
        "amount": p["amount"],
    }


def _account_only(cmd, facts):
    return {"account": cmd.payload["account"]}


def _whitelist_entry_added(cmd, facts):
    p = cmd.payload
    return {
        "account": p["account"],
        "counterparty": p["counterparty"],
        "amount": p["amount"],
    }


def _whitelist_entry_removed(cmd, facts):
    p = cmd.payload
    return {
        "account": p["account"],
        "counterparty": p["counterparty"],
    }


def _whitelist_batch_added(cmd, facts):
    p = cmd.payload
    return {
        "account": p["account"],
        "entries": [
            {"counterparty": e["counterparty"], "amount": e["amount"]}
            for e in p["entries"]
        ],
    }


def _whitelist_batch_removed(cmd, facts):
    p = cmd.payload
    return {
        "account": p["account"],
        "counterparties": list(p["counterparties"]),
    }


def _balance_amount(cmd, facts):
    p = cmd.payload
    return {
        "account": p["account"],
        "amount": p["amount"],
    }


PAYLOAD_BUILDERS = {
    TRANSFER_COMPLETED_V1: _transfer_completed,
    SUPPLY_MINTED_V1: _supply_minted,
    SUPPLY_BURNED_V1: _supply_burned,
    ALLOWANCE_APPROVED_V1: _allowance_approved,
    BLACKLIST_ADDED_V1: _account_only,
    BLACKLIST_REMOVED_V1: _account_only,
    WHITELIST_ENABLED_V1: _account_only,
    WHITELIST_DISABLED_V1: _account_only,
    WHITELIST_ENTRY_ADDED_V1: _whitelist_entry_added,
    WHITELIST_ENTRY_REMOVED_V1: _whitelist_entry_removed,
    WHITELIST_BATCH_ADDED_V1: _whitelist_batch_added,
    WHITELIST_BATCH_REMOVED_V1: _whitelist_batch_removed,
    BALANCE_BLOCKED_V1: _balance_amount,
    BALANCE_UNBLOCKED_V1: _balance_amount,
}

COMMAND_TO_EVENT_TYPE = {
    TRANSFER_REQUEST: TRANSFER_COMPLETED_V1,
    TRANSFER_FROM_REQUEST: TRANSFER_COMPLETED_V1,
    MINT_REQUEST: SUPPLY_MINTED_V1,
    BURN_REQUEST: SUPPLY_BURNED_V1,
    APPROVE_REQUEST: ALLOWANCE_APPROVED_V1,
    BLACKLIST_ADD_REQUEST: BLACKLIST_ADDED_V1,
    BLACKLIST_REMOVE_REQUEST: BLACKLIST_REMOVED_V1,
    WHITELIST_ENABLE_REQUEST: WHITELIST_ENABLED_V1,
    WHITELIST_DISABLE_REQUEST: WHITELIST_DISABLED_V1,
    WHITELIST_ADD_REQUEST: WHITELIST_ENTRY_ADDED_V1,
    WHITELIST_REMOVE_REQUEST: WHITELIST_ENTRY_REMOVED_V1,
    WHITELIST_BATCH_ADD_REQUEST: WHITELIST_BATCH_ADDED_V1,
    WHITELIST_BATCH_REMOVE_REQUEST: WHITELIST_BATCH_REMOVED_V1,
    BALANCE_BLOCK_REQUEST: BALANCE_BLOCKED_V1,
    BALANCE_UNBLOCK_REQUEST: BALANCE_UNBLOCKED_V1,
}


def register_ledger_event_types(registry):
    for event_type, builder in PAYLOAD_BUILDERS.items():
        registry.register(event_type, builder)


def resolve_ledger_event_type(command_type: str):
    return COMMAND_TO_EVENT_TYPE.get(command_type)
