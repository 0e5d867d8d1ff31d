"""
GLC Ledger Engine - Policies
============================
Blacklist, whitelist, blocked-balance and supply guards.

Each policy is a pure function of the command and injected lookups,
returning a RejectionReason or None. Policies never mutate state.
The order the service runs them in is the order failures surface.
"""

from __future__ import annotations

from typing import Callable, Optional

from core.commands.rejection import RejectionReason
from engines.ledger.commands import (
    WHITELIST_BATCH_ADD_REQUEST,
    WHITELIST_BATCH_REMOVE_REQUEST,
)

MAX_UINT256 = 2 ** 256 - 1


class LedgerReasonCode:
    """Closed set of ledger rejection codes."""
    BLACKLISTED = "BLACKLISTED"
    WHITELIST_NOT_ENABLED = "WHITELIST_NOT_ENABLED"
    NOT_WHITELISTED = "NOT_WHITELISTED"
    ALREADY_WHITELISTED = "ALREADY_WHITELISTED"
    INSUFFICIENT_ALLOWANCE = "INSUFFICIENT_ALLOWANCE"
    INSUFFICIENT_UNBLOCKED_BALANCE = "INSUFFICIENT_UNBLOCKED_BALANCE"
    INSUFFICIENT_BLOCKED_BALANCE = "INSUFFICIENT_BLOCKED_BALANCE"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    EXCEEDS_AVAILABLE_BALANCE = "EXCEEDS_AVAILABLE_BALANCE"
    ALREADY_IN_STATE = "ALREADY_IN_STATE"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    INSUFFICIENT_SPENDER_ALLOWANCE = "INSUFFICIENT_SPENDER_ALLOWANCE"
    SUPPLY_OVERFLOW = "SUPPLY_OVERFLOW"
    INVALID_BATCH = "INVALID_BATCH"


# ── Amount ────────────────────────────────────────────────────

def valid_amount_policy(
    amount: int,
    *,
    require_positive: bool = False,
) -> Optional[RejectionReason]:
    """Amount must fit the unsigned 256-bit range (and be > 0 if required)."""
    if amount < 0 or amount > MAX_UINT256:
        return RejectionReason(
            code=LedgerReasonCode.INVALID_AMOUNT,
            message=f"Amount {amount} is outside the unsigned 256-bit range.",
            policy_name="valid_amount_policy",
        )
    if require_positive and amount == 0:
        return RejectionReason(
            code=LedgerReasonCode.INVALID_AMOUNT,
            message="Amount must be greater than zero.",
            policy_name="valid_amount_policy",
        )
    return None


# ── Blacklist ─────────────────────────────────────────────────

def not_blacklisted_policy(
    account: str,
    blacklist_lookup: Callable[[str], bool],
) -> Optional[RejectionReason]:
    if blacklist_lookup(account):
        return RejectionReason(
            code=LedgerReasonCode.BLACKLISTED,
            message=f"Account '{account}' is blacklisted.",
            policy_name="not_blacklisted_policy",
            subject=account,
        )
    return None


# ── Whitelist ─────────────────────────────────────────────────

def whitelist_allowance_policy(
    sender: str,
    recipient: str,
    amount: int,
    whitelist_enabled_lookup: Callable[[str], bool],
    whitelist_lookup: Callable[[str, str], Optional[int]],
) -> Optional[RejectionReason]:
    """
    When the sender's whitelist is on, the recipient needs a positive
    entry covering the amount. Disabled whitelists do not gate.
    """
    if not whitelist_enabled_lookup(sender):
        return None

    allowance = whitelist_lookup(sender, recipient)
    if not allowance:
        return RejectionReason(
            code=LedgerReasonCode.NOT_WHITELISTED,
            message=(
                f"'{recipient}' has no positive whitelist allowance "
                f"under '{sender}'."
            ),
            policy_name="whitelist_allowance_policy",
            subject=recipient,
        )
    if allowance < amount:
        return RejectionReason(
            code=LedgerReasonCode.INSUFFICIENT_ALLOWANCE,
            message=(
                f"Whitelist allowance {allowance} for '{recipient}' "
                f"is below {amount}."
            ),
            policy_name="whitelist_allowance_policy",
            subject=recipient,
        )
    return None


def whitelist_toggle_policy(
    account: str,
    enable: bool,
    whitelist_enabled_lookup: Callable[[str], bool],
) -> Optional[RejectionReason]:
    if whitelist_enabled_lookup(account) == enable:
        state = "enabled" if enable else "disabled"
        return RejectionReason(
            code=LedgerReasonCode.ALREADY_IN_STATE,
            message=f"Whitelist of '{account}' is already {state}.",
            policy_name="whitelist_toggle_policy",
            subject=account,
        )
    return None


def whitelist_enabled_policy(
    account: str,
    whitelist_enabled_lookup: Callable[[str], bool],
) -> Optional[RejectionReason]:
    if not whitelist_enabled_lookup(account):
        return RejectionReason(
            code=LedgerReasonCode.WHITELIST_NOT_ENABLED,
            message=f"Whitelist of '{account}' is not enabled.",
            policy_name="whitelist_enabled_policy",
            subject=account,
        )
    return None


def counterparty_absent_policy(
    account: str,
    counterparty: str,
    whitelist_lookup: Callable[[str, str], Optional[int]],
) -> Optional[RejectionReason]:
    if whitelist_lookup(account, counterparty) is not None:
        return RejectionReason(
            code=LedgerReasonCode.ALREADY_WHITELISTED,
            message=f"'{counterparty}' is already whitelisted by '{account}'.",
            policy_name="counterparty_absent_policy",
            subject=counterparty,
        )
    return None


def counterparty_present_policy(
    account: str,
    counterparty: str,
    whitelist_lookup: Callable[[str, str], Optional[int]],
) -> Optional[RejectionReason]:
    if whitelist_lookup(account, counterparty) is None:
        return RejectionReason(
            code=LedgerReasonCode.NOT_WHITELISTED,
            message=f"'{counterparty}' is not whitelisted by '{account}'.",
            policy_name="counterparty_present_policy",
            subject=counterparty,
        )
    return None


def batch_size_policy(
    size: int,
    limit: int,
) -> Optional[RejectionReason]:
    if size == 0:
        return RejectionReason(
            code=LedgerReasonCode.INVALID_BATCH,
            message="Batch must contain at least one item.",
            policy_name="batch_size_policy",
        )
    if size > limit:
        return RejectionReason(
            code=LedgerReasonCode.INVALID_BATCH,
            message=f"Batch of {size} items exceeds the limit of {limit}.",
            policy_name="batch_size_policy",
        )
    return None


def whitelist_batch_size_policy(limit: int) -> Callable:
    """
    Dispatcher-level policy: whitelist batches must hold between one
    and `limit` items. Reads no ledger state.
    """
    def check(command, context) -> Optional[RejectionReason]:
        if command.command_type == WHITELIST_BATCH_ADD_REQUEST:
            return batch_size_policy(len(command.payload["entries"]), limit)
        if command.command_type == WHITELIST_BATCH_REMOVE_REQUEST:
            return batch_size_policy(len(command.payload["counterparties"]), limit)
        return None

    check.__qualname__ = "whitelist_batch_size_policy"
    return check


# ── Balances ──────────────────────────────────────────────────

def unblocked_balance_policy(
    account: str,
    amount: int,
    balance_lookup: Callable[[str], int],
    blocked_lookup: Callable[[str], int],
) -> Optional[RejectionReason]:
    """Only the unblocked portion of a balance can leave the account."""
    spendable = balance_lookup(account) - blocked_lookup(account)
    if spendable < amount:
        return RejectionReason(
            code=LedgerReasonCode.INSUFFICIENT_UNBLOCKED_BALANCE,
            message=(
                f"'{account}' has {spendable} unblocked, needs {amount}."
            ),
            policy_name="unblocked_balance_policy",
            subject=account,
        )
    return None


def total_balance_policy(
    account: str,
    amount: int,
    balance_lookup: Callable[[str], int],
) -> Optional[RejectionReason]:
    """Burn is checked against the total balance, blocked part included."""
    balance = balance_lookup(account)
    if balance < amount:
        return RejectionReason(
            code=LedgerReasonCode.INSUFFICIENT_BALANCE,
            message=f"'{account}' holds {balance}, needs {amount}.",
            policy_name="total_balance_policy",
            subject=account,
        )
    return None


def block_capacity_policy(
    account: str,
    amount: int,
    balance_lookup: Callable[[str], int],
    blocked_lookup: Callable[[str], int],
) -> Optional[RejectionReason]:
    balance = balance_lookup(account)
    blocked = blocked_lookup(account)
    if blocked + amount > balance:
        return RejectionReason(
            code=LedgerReasonCode.EXCEEDS_AVAILABLE_BALANCE,
            message=(
                f"Blocking {amount} on '{account}' would exceed its "
                f"balance {balance} (already blocked {blocked})."
            ),
            policy_name="block_capacity_policy",
            subject=account,
        )
    return None


def blocked_sufficient_policy(
    account: str,
    amount: int,
    blocked_lookup: Callable[[str], int],
) -> Optional[RejectionReason]:
    blocked = blocked_lookup(account)
    if amount > blocked:
        return RejectionReason(
            code=LedgerReasonCode.INSUFFICIENT_BLOCKED_BALANCE,
            message=f"'{account}' has {blocked} blocked, cannot unblock {amount}.",
            policy_name="blocked_sufficient_policy",
            subject=account,
        )
    return None


def spender_allowance_policy(
    owner: str,
    spender: str,
    amount: int,
    spending_allowance_lookup: Callable[[str, str], int],
) -> Optional[RejectionReason]:
    allowance = spending_allowance_lookup(owner, spender)
    if allowance < amount:
        return RejectionReason(
            code=LedgerReasonCode.INSUFFICIENT_SPENDER_ALLOWANCE,
            message=(
                f"'{spender}' may spend {allowance} of '{owner}', "
                f"needs {amount}."
            ),
            policy_name="spender_allowance_policy",
            subject=spender,
        )
    return None


def supply_capacity_policy(
    amount: int,
    supply_lookup: Callable[[], int],
    balance_lookup: Callable[[str], int],
    recipient: str,
) -> Optional[RejectionReason]:
    supply = supply_lookup()
    if supply + amount > MAX_UINT256 or balance_lookup(recipient) + amount > MAX_UINT256:
        return RejectionReason(
            code=LedgerReasonCode.SUPPLY_OVERFLOW,
            message=f"Minting {amount} would overflow the supply of {supply}.",
            policy_name="supply_capacity_policy",
        )
    return None
