"""
GLC Ledger Engine - Application Service
=======================================
Balances, blacklist, per-sender whitelists and blocked balances.

Every accepted command runs under the locks of the accounts it
touches: policies read the projection, the event is recorded, then
the projection applies it. A policy failure raises PolicyRejection
before anything is recorded, so rejected commands leave no trace.

An accepted command whose apply() breaks a ledger invariant is a
bug. The database path rolls the event back with the projection; the
in-memory log keeps it, and the projection must be rebuilt from the
log before the ledger is used again.
"""

from __future__ import annotations

import contextlib
import logging
import threading
import weakref
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Protocol

from core.commands.base import Command, build_command
from core.commands.rejection import PolicyRejection, RejectionReason
from core.config.ledger import LedgerConfig
from core.event_store import unit_of_work
from core.event_store.errors import EventPersistenceError, PersistRejectionCode
from engines.ledger.commands import (
    APPROVE_REQUEST,
    BALANCE_BLOCK_REQUEST,
    BALANCE_UNBLOCK_REQUEST,
    BLACKLIST_ADD_REQUEST,
    BLACKLIST_REMOVE_REQUEST,
    BURN_REQUEST,
    LEDGER_COMMAND_TYPES,
    MINT_REQUEST,
    TRANSFER_FROM_REQUEST,
    TRANSFER_REQUEST,
    WHITELIST_ADD_REQUEST,
    WHITELIST_BATCH_ADD_REQUEST,
    WHITELIST_BATCH_REMOVE_REQUEST,
    WHITELIST_DISABLE_REQUEST,
    WHITELIST_ENABLE_REQUEST,
    WHITELIST_REMOVE_REQUEST,
    AddToWhitelistRequest,
    ApproveRequest,
    BatchAddToWhitelistRequest,
    BatchRemoveFromWhitelistRequest,
    BlacklistRequest,
    BlockBalanceRequest,
    BurnRequest,
    MintRequest,
    RemoveFromWhitelistRequest,
    TransferFromRequest,
    TransferRequest,
    WhitelistToggleRequest,
)
from engines.ledger.events import (
    ALLOWANCE_APPROVED_V1,
    BALANCE_BLOCKED_V1,
    BALANCE_UNBLOCKED_V1,
    BLACKLIST_ADDED_V1,
    BLACKLIST_REMOVED_V1,
    PAYLOAD_BUILDERS,
    SUPPLY_BURNED_V1,
    SUPPLY_MINTED_V1,
    TRANSFER_COMPLETED_V1,
    WHITELIST_BATCH_ADDED_V1,
    WHITELIST_BATCH_REMOVED_V1,
    WHITELIST_DISABLED_V1,
    WHITELIST_ENABLED_V1,
    WHITELIST_ENTRY_ADDED_V1,
    WHITELIST_ENTRY_REMOVED_V1,
    register_ledger_event_types,
    resolve_ledger_event_type,
)
from engines.ledger.policies import (
    block_capacity_policy,
    blocked_sufficient_policy,
    counterparty_absent_policy,
    counterparty_present_policy,
    not_blacklisted_policy,
    spender_allowance_policy,
    supply_capacity_policy,
    total_balance_policy,
    unblocked_balance_policy,
    valid_amount_policy,
    whitelist_allowance_policy,
    whitelist_enabled_policy,
    whitelist_toggle_policy,
)

logger = logging.getLogger("glc.ledger")


class LedgerInvariantError(Exception):
    """
    An internal ledger invariant broke. This is a bug, never a
    rejection: policies are supposed to make it unreachable.
    """

    def __init__(self, invariant: str, detail: str):
        self.invariant = invariant
        self.detail = detail
        super().__init__(f"{invariant}: {detail}")


# ══════════════════════════════════════════════════════════════
# PROTOCOLS
# ══════════════════════════════════════════════════════════════

class EventFactoryProtocol(Protocol):
    def __call__(
        self, *, command: Command, event_type: str, payload: dict,
    ) -> dict:
        ...


class PersistEventProtocol(Protocol):
    def __call__(
        self, *, event_data: dict, context: Any, registry: Any, **kwargs,
    ) -> Any:
        ...


# ══════════════════════════════════════════════════════════════
# PROJECTION STORE
# ══════════════════════════════════════════════════════════════

@dataclass
class AccountState:
    balance: int = 0
    blocked_balance: int = 0
    blacklisted: bool = False
    whitelist_enabled: bool = False
    whitelist: Dict[str, int] = field(default_factory=dict)

    @property
    def unblocked_balance(self) -> int:
        return self.balance - self.blocked_balance


class LedgerProjectionStore:
    """
    In-memory projection of ledger state.

    Reads never create entries: unknown accounts read as zero/false.
    apply() is written against small read/write primitives so a
    durable store can override just those.
    """

    def __init__(self):
        self._events: List[dict] = []
        self._accounts: Dict[str, AccountState] = {}
        # (owner, spender) → delegated spending allowance
        self._spending: Dict[tuple, int] = {}
        self._total_supply = 0

    # ── Transaction boundary ──────────────────────────────────

    def transaction(self):
        return unit_of_work.atomic()

    def locked(self, accounts: Iterable[str], *, supply: bool = False):
        """
        Transaction a command's checks, record and apply run in.
        In memory, AccountLockTable already serializes the accounts.
        """
        return self.transaction()

    # ── Apply ─────────────────────────────────────────────────

    def apply(self, event_type: str, payload: Dict[str, Any]) -> None:
        with self.transaction():
            self._apply(event_type, payload)
            self._record(event_type, payload)

    def _apply(self, event_type: str, payload: Dict[str, Any]) -> None:
        if event_type == TRANSFER_COMPLETED_V1:
            sender = payload["sender"]
            recipient = payload["recipient"]
            amount = payload["amount"]
            if payload.get("whitelist_allowance_consumed"):
                remaining = self.whitelist_allowance(sender, recipient) or 0
                self._set_whitelist_entry(
                    sender, recipient,
                    self._non_negative("WHITELIST_ALLOWANCE", remaining - amount),
                )
            spender = payload.get("spender")
            if spender is not None:
                self._set_spending_allowance(
                    sender, spender,
                    self._non_negative(
                        "SPENDING_ALLOWANCE",
                        self.spending_allowance(sender, spender) - amount,
                    ),
                )
            self._set_balance(
                sender,
                self._non_negative("BALANCE", self.balance_of(sender) - amount),
            )
            self._set_balance(recipient, self.balance_of(recipient) + amount)

        elif event_type == SUPPLY_MINTED_V1:
            recipient = payload["recipient"]
            self._set_balance(recipient, self.balance_of(recipient) + payload["amount"])
            self._set_total_supply(self.total_supply() + payload["amount"])

        elif event_type == SUPPLY_BURNED_V1:
            holder = payload["holder"]
            amount = payload["amount"]
            released = payload.get("blocked_released", 0)
            if released:
                self._set_blocked_balance(
                    holder,
                    self._non_negative(
                        "BLOCKED_BALANCE", self.blocked_balance_of(holder) - released
                    ),
                )
            self._set_balance(
                holder,
                self._non_negative("BALANCE", self.balance_of(holder) - amount),
            )
            self._set_total_supply(
                self._non_negative("TOTAL_SUPPLY", self.total_supply() - amount)
            )

        elif event_type == ALLOWANCE_APPROVED_V1:
            self._set_spending_allowance(
                payload["owner"], payload["spender"], payload["amount"]
            )

        elif event_type == BLACKLIST_ADDED_V1:
            self._set_blacklisted(payload["account"], True)

        elif event_type == BLACKLIST_REMOVED_V1:
            self._set_blacklisted(payload["account"], False)

        elif event_type == WHITELIST_ENABLED_V1:
            self._set_whitelist_enabled(payload["account"], True)

        elif event_type == WHITELIST_DISABLED_V1:
            # Entries are kept: re-enabling restores them.
            self._set_whitelist_enabled(payload["account"], False)

        elif event_type == WHITELIST_ENTRY_ADDED_V1:
            self._set_whitelist_entry(
                payload["account"], payload["counterparty"], payload["amount"]
            )

        elif event_type == WHITELIST_ENTRY_REMOVED_V1:
            self._delete_whitelist_entry(payload["account"], payload["counterparty"])

        elif event_type == WHITELIST_BATCH_ADDED_V1:
            for entry in payload["entries"]:
                self._set_whitelist_entry(
                    payload["account"], entry["counterparty"], entry["amount"]
                )

        elif event_type == WHITELIST_BATCH_REMOVED_V1:
            for counterparty in payload["counterparties"]:
                self._delete_whitelist_entry(payload["account"], counterparty)

        elif event_type == BALANCE_BLOCKED_V1:
            account = payload["account"]
            blocked = self.blocked_balance_of(account) + payload["amount"]
            if blocked > self.balance_of(account):
                raise LedgerInvariantError(
                    "BLOCKED_WITHIN_BALANCE",
                    f"blocked {blocked} exceeds balance of '{account}'.",
                )
            self._set_blocked_balance(account, blocked)

        elif event_type == BALANCE_UNBLOCKED_V1:
            account = payload["account"]
            self._set_blocked_balance(
                account,
                self._non_negative(
                    "BLOCKED_BALANCE",
                    self.blocked_balance_of(account) - payload["amount"],
                ),
            )

        else:
            raise LedgerInvariantError(
                "UNKNOWN_EVENT_TYPE", f"Cannot apply '{event_type}'."
            )

    @staticmethod
    def _non_negative(name: str, value: int) -> int:
        if value < 0:
            raise LedgerInvariantError(name, f"would become negative ({value}).")
        return value

    # ── Write primitives ──────────────────────────────────────

    def _account_for_write(self, account: str) -> AccountState:
        state = self._accounts.get(account)
        if state is None:
            state = AccountState()
            self._accounts[account] = state
        return state

    def _record(self, event_type: str, payload: Dict[str, Any]) -> None:
        self._events.append({"event_type": event_type, "payload": payload})

    def _set_balance(self, account: str, value: int) -> None:
        self._account_for_write(account).balance = value

    def _set_blocked_balance(self, account: str, value: int) -> None:
        self._account_for_write(account).blocked_balance = value

    def _set_blacklisted(self, account: str, value: bool) -> None:
        self._account_for_write(account).blacklisted = value

    def _set_whitelist_enabled(self, account: str, value: bool) -> None:
        self._account_for_write(account).whitelist_enabled = value

    def _set_whitelist_entry(self, account: str, counterparty: str, amount: int) -> None:
        self._account_for_write(account).whitelist[counterparty] = amount

    def _delete_whitelist_entry(self, account: str, counterparty: str) -> None:
        state = self._accounts.get(account)
        if state is not None:
            state.whitelist.pop(counterparty, None)

    def _set_spending_allowance(self, owner: str, spender: str, amount: int) -> None:
        self._spending[(owner, spender)] = amount

    def _set_total_supply(self, value: int) -> None:
        self._total_supply = value

    # ── Queries ───────────────────────────────────────────────

    def get_account(self, account: str) -> AccountState:
        """Copy of the account state (a default one for unknown accounts)."""
        state = self._accounts.get(account)
        if state is None:
            return AccountState()
        return replace(state, whitelist=dict(state.whitelist))

    def accounts(self) -> Dict[str, AccountState]:
        return {address: self.get_account(address) for address in self._accounts}

    def balance_of(self, account: str) -> int:
        state = self._accounts.get(account)
        return state.balance if state else 0

    def blocked_balance_of(self, account: str) -> int:
        state = self._accounts.get(account)
        return state.blocked_balance if state else 0

    def is_blacklisted(self, account: str) -> bool:
        state = self._accounts.get(account)
        return state.blacklisted if state else False

    def is_whitelist_enabled(self, account: str) -> bool:
        state = self._accounts.get(account)
        return state.whitelist_enabled if state else False

    def whitelist_allowance(self, account: str, counterparty: str) -> Optional[int]:
        """Remaining allowance, or None when no entry exists."""
        state = self._accounts.get(account)
        if state is None:
            return None
        return state.whitelist.get(counterparty)

    def spending_allowance(self, owner: str, spender: str) -> int:
        return self._spending.get((owner, spender), 0)

    def total_supply(self) -> int:
        return self._total_supply

    @property
    def event_count(self) -> int:
        return len(self._events)

    # ── Replay ────────────────────────────────────────────────

    def truncate(self) -> None:
        self._events.clear()
        self._accounts.clear()
        self._spending.clear()
        self._total_supply = 0

    def rebuild(self, events: Iterable[dict]) -> int:
        """Reset, then re-apply recorded events in order. Returns the count."""
        self.truncate()
        count = 0
        for event in events:
            self.apply(event["event_type"], event["payload"])
            count += 1
        logger.info(f"Ledger projection rebuilt from {count} events")
        return count


# ══════════════════════════════════════════════════════════════
# ACCOUNT LOCKS
# ══════════════════════════════════════════════════════════════

class _AccountLock:
    __slots__ = ("_lock", "__weakref__")

    def __init__(self):
        self._lock = threading.Lock()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info):
        self._lock.release()


class AccountLockTable:
    """
    One lock per account, acquired in sorted order so two commands
    touching the same pair of accounts can never deadlock. The
    supply lock is always taken after account locks.

    The table holds locks weakly: an account's lock lives only while
    some command holds or waits on it, so the table is bounded by the
    number of commands in flight.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, _AccountLock]" = (
            weakref.WeakValueDictionary()
        )
        self._guard = threading.Lock()
        self._supply_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._locks)

    def _lock_for(self, account: str) -> _AccountLock:
        with self._guard:
            lock = self._locks.get(account)
            if lock is None:
                lock = _AccountLock()
                self._locks[account] = lock
            return lock

    @contextlib.contextmanager
    def hold(self, accounts: Iterable[str], *, supply: bool = False) -> Iterator[None]:
        held = [self._lock_for(account) for account in sorted(set(accounts))]
        with contextlib.ExitStack() as stack:
            for lock in held:
                stack.enter_context(lock)
            if supply:
                stack.enter_context(self._supply_lock)
            yield


# ══════════════════════════════════════════════════════════════
# EXECUTION RESULT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LedgerExecutionResult:
    event_type: str
    event_data: dict
    persist_result: Any
    projection_applied: bool


# ══════════════════════════════════════════════════════════════
# COMMAND HANDLER
# ══════════════════════════════════════════════════════════════

class _LedgerCommandHandler:
    def __init__(self, service: "LedgerService"):
        self._service = service

    def execute(self, command: Command) -> LedgerExecutionResult:
        return self._service._execute_command(command)


def _reject(reason: Optional[RejectionReason]) -> None:
    if reason is not None:
        raise PolicyRejection(reason)


# ══════════════════════════════════════════════════════════════
# APPLICATION SERVICE
# ══════════════════════════════════════════════════════════════

class LedgerService:
    """Gated ledger engine application service."""

    def __init__(
        self,
        *,
        ledger_context,
        command_bus,
        event_factory: EventFactoryProtocol,
        persist_event: PersistEventProtocol,
        event_type_registry,
        projection_store: LedgerProjectionStore | None = None,
        config: LedgerConfig | None = None,
        lock_table: AccountLockTable | None = None,
    ):
        self._ledger_context = ledger_context
        self._command_bus = command_bus
        self._event_factory = event_factory
        self._persist_event = persist_event
        self._event_type_registry = event_type_registry
        self._projection_store = projection_store or LedgerProjectionStore()
        self._config = config or LedgerConfig()
        self._locks = lock_table or AccountLockTable()

        register_ledger_event_types(self._event_type_registry)
        self._register_handlers()

    def _register_handlers(self) -> None:
        handler = _LedgerCommandHandler(self)
        for command_type in sorted(LEDGER_COMMAND_TYPES):
            self._command_bus.register_handler(command_type, handler)

    def _is_persist_accepted(self, persist_result: Any) -> bool:
        if hasattr(persist_result, "accepted"):
            return bool(getattr(persist_result, "accepted"))
        if isinstance(persist_result, dict):
            return bool(persist_result.get("accepted"))
        return bool(persist_result)

    # ── Locking scope ─────────────────────────────────────────

    @staticmethod
    def _lock_scope(command: Command) -> tuple[tuple[str, ...], bool]:
        p = command.payload
        ct = command.command_type
        if ct in (TRANSFER_REQUEST, TRANSFER_FROM_REQUEST):
            return (p["sender"], p["recipient"]), False
        if ct == MINT_REQUEST:
            return (p["recipient"],), True
        if ct == BURN_REQUEST:
            return (p["holder"],), True
        if ct == APPROVE_REQUEST:
            return (p["owner"],), False
        return (p["account"],), False

    # ── Execution ─────────────────────────────────────────────

    def _execute_command(self, command: Command) -> LedgerExecutionResult:
        event_type = resolve_ledger_event_type(command.command_type)
        if event_type is None:
            raise ValueError(
                f"Unsupported ledger command type: {command.command_type}"
            )

        builder = PAYLOAD_BUILDERS.get(event_type)
        if builder is None:
            raise ValueError(f"No payload builder for: {event_type}")

        accounts, supply = self._lock_scope(command)
        # The store's locked block is the transaction: policies read
        # under it and subscribers are notified when it commits, after
        # the projection has applied the event.
        with self._locks.hold(accounts, supply=supply), \
                self._projection_store.locked(accounts, supply=supply):
            facts = self._run_policies(command)
            payload = builder(command, facts)

            event_data = self._event_factory(
                command=command,
                event_type=event_type,
                payload=payload,
            )

            persist_result = self._persist_event(
                event_data=event_data,
                context=self._ledger_context,
                registry=self._event_type_registry,
            )
            if not self._is_persist_accepted(persist_result):
                raise EventPersistenceError(
                    getattr(persist_result, "code", None)
                    or PersistRejectionCode.MISSING_FIELD,
                    getattr(persist_result, "message", "")
                    or f"Event log refused {event_type}.",
                )

            self._projection_store.apply(event_type=event_type, payload=payload)

        logger.info(
            f"{event_type} recorded for command {command.command_id} "
            f"(actor '{command.actor_id}')"
        )
        return LedgerExecutionResult(
            event_type=event_type,
            event_data=getattr(persist_result, "event", None) or event_data,
            persist_result=persist_result,
            projection_applied=True,
        )

    # ── Policies ──────────────────────────────────────────────

    def _run_policies(self, command: Command) -> dict:
        """
        Run the state-dependent checks for a command in order.
        Raises PolicyRejection on the first failure; returns facts
        the payload builder needs on success.
        """
        store = self._projection_store
        p = command.payload
        ct = command.command_type

        if ct in (TRANSFER_REQUEST, TRANSFER_FROM_REQUEST):
            sender, recipient, amount = p["sender"], p["recipient"], p["amount"]
            _reject(valid_amount_policy(amount))
            _reject(not_blacklisted_policy(sender, store.is_blacklisted))
            _reject(not_blacklisted_policy(recipient, store.is_blacklisted))
            _reject(whitelist_allowance_policy(
                sender, recipient, amount,
                store.is_whitelist_enabled, store.whitelist_allowance,
            ))
            _reject(unblocked_balance_policy(
                sender, amount, store.balance_of, store.blocked_balance_of,
            ))
            if ct == TRANSFER_FROM_REQUEST:
                _reject(spender_allowance_policy(
                    sender, p["spender"], amount, store.spending_allowance,
                ))
            return {"whitelist_allowance_consumed": store.is_whitelist_enabled(sender)}

        if ct == MINT_REQUEST:
            recipient, amount = p["recipient"], p["amount"]
            _reject(not_blacklisted_policy(recipient, store.is_blacklisted))
            _reject(valid_amount_policy(amount, require_positive=True))
            _reject(supply_capacity_policy(
                amount, store.total_supply, store.balance_of, recipient,
            ))
            return {}

        if ct == BURN_REQUEST:
            holder, amount = p["holder"], p["amount"]
            _reject(valid_amount_policy(amount))
            _reject(total_balance_policy(holder, amount, store.balance_of))
            new_balance = store.balance_of(holder) - amount
            blocked = store.blocked_balance_of(holder)
            return {"blocked_released": max(0, blocked - new_balance)}

        if ct == APPROVE_REQUEST:
            _reject(valid_amount_policy(p["amount"]))
            return {}

        if ct in (BLACKLIST_ADD_REQUEST, BLACKLIST_REMOVE_REQUEST):
            return {}

        account = p["account"]

        if ct in (WHITELIST_ENABLE_REQUEST, WHITELIST_DISABLE_REQUEST):
            _reject(whitelist_toggle_policy(
                account, ct == WHITELIST_ENABLE_REQUEST, store.is_whitelist_enabled,
            ))
            return {}

        if ct == WHITELIST_ADD_REQUEST:
            _reject(whitelist_enabled_policy(account, store.is_whitelist_enabled))
            _reject(counterparty_absent_policy(
                account, p["counterparty"], store.whitelist_allowance,
            ))
            _reject(valid_amount_policy(p["amount"]))
            return {}

        if ct == WHITELIST_REMOVE_REQUEST:
            _reject(whitelist_enabled_policy(account, store.is_whitelist_enabled))
            _reject(counterparty_present_policy(
                account, p["counterparty"], store.whitelist_allowance,
            ))
            return {}

        if ct == WHITELIST_BATCH_ADD_REQUEST:
            entries = p["entries"]
            _reject(whitelist_enabled_policy(account, store.is_whitelist_enabled))
            lookup = self._staged_whitelist_lookup()
            for entry in entries:
                _reject(counterparty_absent_policy(account, entry["counterparty"], lookup))
                _reject(valid_amount_policy(entry["amount"]))
                lookup.stage(entry["counterparty"], entry["amount"])
            return {}

        if ct == WHITELIST_BATCH_REMOVE_REQUEST:
            counterparties = p["counterparties"]
            _reject(whitelist_enabled_policy(account, store.is_whitelist_enabled))
            lookup = self._staged_whitelist_lookup()
            for counterparty in counterparties:
                _reject(counterparty_present_policy(account, counterparty, lookup))
                lookup.stage(counterparty, None)
            return {}

        if ct == BALANCE_BLOCK_REQUEST:
            _reject(valid_amount_policy(p["amount"], require_positive=True))
            _reject(block_capacity_policy(
                account, p["amount"], store.balance_of, store.blocked_balance_of,
            ))
            return {}

        if ct == BALANCE_UNBLOCK_REQUEST:
            _reject(valid_amount_policy(p["amount"], require_positive=True))
            _reject(blocked_sufficient_policy(
                account, p["amount"], store.blocked_balance_of,
            ))
            return {}

        raise ValueError(f"No policies defined for: {ct}")

    def _staged_whitelist_lookup(self) -> "_StagedWhitelistLookup":
        return _StagedWhitelistLookup(self._projection_store.whitelist_allowance)

    # ══════════════════════════════════════════════════════════
    # CALLER-FACING OPERATIONS
    # ══════════════════════════════════════════════════════════

    def _submit(self, request) -> Any:
        return self._command_bus.handle(build_command(request.to_command()))

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    @property
    def _ledger_id(self):
        return self._ledger_context.ledger_id

    def transfer(self, sender: str, recipient: str, amount: int):
        return self._submit(TransferRequest(
            ledger_id=self._ledger_id, actor_id=sender, recipient=recipient,
            amount=amount, issued_at=self._now(),
        ))

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int):
        return self._submit(TransferFromRequest(
            ledger_id=self._ledger_id, actor_id=spender, owner=owner,
            recipient=recipient, amount=amount, issued_at=self._now(),
        ))

    def approve(self, owner: str, spender: str, amount: int):
        return self._submit(ApproveRequest(
            ledger_id=self._ledger_id, actor_id=owner, spender=spender,
            amount=amount, issued_at=self._now(),
        ))

    def mint(self, actor_id: str, recipient: str, amount: int):
        return self._submit(MintRequest(
            ledger_id=self._ledger_id, actor_id=actor_id, recipient=recipient,
            amount=amount, issued_at=self._now(),
        ))

    def burn(self, holder: str, amount: int):
        return self._submit(BurnRequest(
            ledger_id=self._ledger_id, actor_id=holder, amount=amount,
            issued_at=self._now(),
        ))

    def blacklist(self, actor_id: str, account: str):
        return self._submit(BlacklistRequest(
            ledger_id=self._ledger_id, actor_id=actor_id, account=account,
            issued_at=self._now(), listed=True,
        ))

    def remove_from_blacklist(self, actor_id: str, account: str):
        return self._submit(BlacklistRequest(
            ledger_id=self._ledger_id, actor_id=actor_id, account=account,
            issued_at=self._now(), listed=False,
        ))

    def enable_whitelist(self, actor_id: str, account: str):
        return self._submit(WhitelistToggleRequest(
            ledger_id=self._ledger_id, actor_id=actor_id, account=account,
            issued_at=self._now(), enabled=True,
        ))

    def disable_whitelist(self, actor_id: str, account: str):
        return self._submit(WhitelistToggleRequest(
            ledger_id=self._ledger_id, actor_id=actor_id, account=account,
            issued_at=self._now(), enabled=False,
        ))

    def add_to_whitelist(self, actor_id: str, account: str, counterparty: str, amount: int):
        return self._submit(AddToWhitelistRequest(
            ledger_id=self._ledger_id, actor_id=actor_id, account=account,
            counterparty=counterparty, amount=amount, issued_at=self._now(),
        ))

    def remove_from_whitelist(self, actor_id: str, account: str, counterparty: str):
        return self._submit(RemoveFromWhitelistRequest(
            ledger_id=self._ledger_id, actor_id=actor_id, account=account,
            counterparty=counterparty, issued_at=self._now(),
        ))

    def batch_add_to_whitelist(self, actor_id: str, account: str, entries):
        return self._submit(BatchAddToWhitelistRequest(
            ledger_id=self._ledger_id, actor_id=actor_id, account=account,
            entries=tuple(tuple(entry) for entry in entries),
            issued_at=self._now(),
        ))

    def batch_remove_from_whitelist(self, actor_id: str, account: str, counterparties):
        return self._submit(BatchRemoveFromWhitelistRequest(
            ledger_id=self._ledger_id, actor_id=actor_id, account=account,
            counterparties=tuple(counterparties), issued_at=self._now(),
        ))

    def block_balance(self, actor_id: str, account: str, amount: int):
        return self._submit(BlockBalanceRequest(
            ledger_id=self._ledger_id, actor_id=actor_id, account=account,
            amount=amount, issued_at=self._now(), blocked=True,
        ))

    def unblock_balance(self, actor_id: str, account: str, amount: int):
        return self._submit(BlockBalanceRequest(
            ledger_id=self._ledger_id, actor_id=actor_id, account=account,
            amount=amount, issued_at=self._now(), blocked=False,
        ))

    # ══════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def symbol(self) -> str:
        return self._config.symbol

    @property
    def decimals(self) -> int:
        return self._config.decimals

    def is_blacklisted(self, account: str) -> bool:
        return self._projection_store.is_blacklisted(account)

    def get_blocked_balance(self, account: str) -> int:
        return self._projection_store.blocked_balance_of(account)

    def get_whitelisted_amount(self, account: str, counterparty: str) -> int:
        return self._projection_store.whitelist_allowance(account, counterparty) or 0

    def is_whitelisted(self, account: str, counterparty: str) -> bool:
        return self._projection_store.whitelist_allowance(account, counterparty) is not None

    def is_whitelist_enabled(self, account: str) -> bool:
        return self._projection_store.is_whitelist_enabled(account)

    def balance_of(self, account: str) -> int:
        return self._projection_store.balance_of(account)

    def get_unblocked_balance(self, account: str) -> int:
        store = self._projection_store
        return store.balance_of(account) - store.blocked_balance_of(account)

    def get_spending_allowance(self, owner: str, spender: str) -> int:
        return self._projection_store.spending_allowance(owner, spender)

    def total_supply(self) -> int:
        return self._projection_store.total_supply()

    @property
    def projection_store(self) -> LedgerProjectionStore:
        return self._projection_store

    @property
    def config(self) -> LedgerConfig:
        return self._config


class _StagedWhitelistLookup:
    """
    Whitelist lookup that sees earlier batch items as if applied,
    without touching the projection.
    """

    _REMOVED = object()

    def __init__(self, base: Callable[[str, str], Optional[int]]):
        self._base = base
        self._staged: Dict[str, Any] = {}

    def stage(self, counterparty: str, amount: Optional[int]) -> None:
        self._staged[counterparty] = self._REMOVED if amount is None else amount

    def __call__(self, account: str, counterparty: str) -> Optional[int]:
        if counterparty in self._staged:
            value = self._staged[counterparty]
            return None if value is self._REMOVED else value
        return self._base(account, counterparty)
