"""
GLC Ledger Store - Database Projection Store and Event Log
==========================================================
Django ORM implementations of the ledger projection and event log.

DbLedgerProjectionStore reuses LedgerProjectionStore.apply() and
swaps its read/write primitives for ORM queries. A command's checks,
record and apply run in one transaction.atomic() holding row locks
on the accounts involved. DbEventLog dispatches recorded events to
subscribers via transaction.on_commit, so a rolled back command is
never observed.
"""

from __future__ import annotations

import contextlib
import copy
import logging
import uuid
from typing import Any, Dict, Iterable, Optional

from django.db import transaction

from core.event_store.errors import PersistRejectionCode, PersistResult
from core.event_store.hashing.hasher import (
    GENESIS_HASH,
    compute_event_hash,
    hashed_body,
)
from core.event_store.hashing.verifier import ChainVerification, verify_hash_chain
from core.event_store.log import REQUIRED_EVENT_FIELDS
from core.events.dispatcher import dispatch
from core.events.registry import SubscriberRegistry
from core.ledger_store.models import (
    AccountRecord,
    LedgerEventRecord,
    SpendingAllowanceRecord,
    SupplyRecord,
    WhitelistEntryRecord,
)
from engines.ledger.services import AccountState, LedgerProjectionStore

logger = logging.getLogger("glc.ledger")


def _to_int(value: Optional[str]) -> int:
    return int(value) if value else 0


# ══════════════════════════════════════════════════════════════
# PROJECTION STORE
# ══════════════════════════════════════════════════════════════

class DbLedgerProjectionStore(LedgerProjectionStore):
    """Projection of one ledger stored in the ledger_store tables."""

    def __init__(self, ledger_id: uuid.UUID):
        super().__init__()
        if not isinstance(ledger_id, uuid.UUID):
            raise ValueError("ledger_id must be UUID.")
        self._ledger_id = ledger_id
        self._applied = 0

    def transaction(self):
        return transaction.atomic()

    @contextlib.contextmanager
    def locked(self, accounts: Iterable[str], *, supply: bool = False):
        """
        Open the command's transaction and lock the rows its checks
        read, so processes sharing the database serialize on them.

        Existing account rows are locked in address order. When the
        command touches an account with no row yet, or changes supply,
        the ledger's supply row is locked after them; it is created if
        missing so there is a row to lock.
        """
        addresses = sorted(set(accounts))
        with transaction.atomic():
            rows = list(
                self._accounts_qs()
                .select_for_update()
                .filter(address__in=addresses)
                .order_by("address")
                .values_list("address", flat=True)
            )
            if supply or len(rows) < len(addresses):
                SupplyRecord.objects.get_or_create(ledger_id=self._ledger_id)
                list(
                    SupplyRecord.objects.select_for_update()
                    .filter(ledger_id=self._ledger_id)
                )
            yield

    def _record(self, event_type: str, payload: Dict[str, Any]) -> None:
        self._applied += 1

    @property
    def event_count(self) -> int:
        return self._applied

    # ── Rows ──────────────────────────────────────────────────

    def _accounts_qs(self):
        return AccountRecord.objects.filter(ledger_id=self._ledger_id)

    def _account_row(self, account: str) -> Optional[AccountRecord]:
        return self._accounts_qs().filter(address=account).first()

    def _account_row_for_write(self, account: str) -> AccountRecord:
        row, _ = AccountRecord.objects.get_or_create(
            ledger_id=self._ledger_id, address=account,
        )
        return row

    def _entries_qs(self, account: str):
        return WhitelistEntryRecord.objects.filter(
            ledger_id=self._ledger_id, account=account,
        )

    # ── Write primitives ──────────────────────────────────────

    def _set_account_field(self, account: str, name: str, value) -> None:
        row = self._account_row_for_write(account)
        setattr(row, name, value)
        row.save(update_fields=[name])

    def _set_balance(self, account: str, value: int) -> None:
        self._set_account_field(account, "balance", str(value))

    def _set_blocked_balance(self, account: str, value: int) -> None:
        self._set_account_field(account, "blocked_balance", str(value))

    def _set_blacklisted(self, account: str, value: bool) -> None:
        self._set_account_field(account, "blacklisted", value)

    def _set_whitelist_enabled(self, account: str, value: bool) -> None:
        self._set_account_field(account, "whitelist_enabled", value)

    def _set_whitelist_entry(self, account: str, counterparty: str, amount: int) -> None:
        self._account_row_for_write(account)
        WhitelistEntryRecord.objects.update_or_create(
            ledger_id=self._ledger_id,
            account=account,
            counterparty=counterparty,
            defaults={"allowance": str(amount)},
        )

    def _delete_whitelist_entry(self, account: str, counterparty: str) -> None:
        self._entries_qs(account).filter(counterparty=counterparty).delete()

    def _set_spending_allowance(self, owner: str, spender: str, amount: int) -> None:
        SpendingAllowanceRecord.objects.update_or_create(
            ledger_id=self._ledger_id,
            owner=owner,
            spender=spender,
            defaults={"amount": str(amount)},
        )

    def _set_total_supply(self, value: int) -> None:
        SupplyRecord.objects.update_or_create(
            ledger_id=self._ledger_id,
            defaults={"total_supply": str(value)},
        )

    # ── Queries ───────────────────────────────────────────────

    def _state_from_row(self, row: AccountRecord) -> AccountState:
        return AccountState(
            balance=_to_int(row.balance),
            blocked_balance=_to_int(row.blocked_balance),
            blacklisted=row.blacklisted,
            whitelist_enabled=row.whitelist_enabled,
            whitelist={
                entry.counterparty: _to_int(entry.allowance)
                for entry in self._entries_qs(row.address)
            },
        )

    def get_account(self, account: str) -> AccountState:
        row = self._account_row(account)
        if row is None:
            return AccountState()
        return self._state_from_row(row)

    def accounts(self) -> Dict[str, AccountState]:
        return {row.address: self._state_from_row(row) for row in self._accounts_qs()}

    def balance_of(self, account: str) -> int:
        row = self._account_row(account)
        return _to_int(row.balance) if row else 0

    def blocked_balance_of(self, account: str) -> int:
        row = self._account_row(account)
        return _to_int(row.blocked_balance) if row else 0

    def is_blacklisted(self, account: str) -> bool:
        row = self._account_row(account)
        return row.blacklisted if row else False

    def is_whitelist_enabled(self, account: str) -> bool:
        row = self._account_row(account)
        return row.whitelist_enabled if row else False

    def whitelist_allowance(self, account: str, counterparty: str) -> Optional[int]:
        entry = self._entries_qs(account).filter(counterparty=counterparty).first()
        return _to_int(entry.allowance) if entry else None

    def spending_allowance(self, owner: str, spender: str) -> int:
        row = SpendingAllowanceRecord.objects.filter(
            ledger_id=self._ledger_id, owner=owner, spender=spender,
        ).first()
        return _to_int(row.amount) if row else 0

    def total_supply(self) -> int:
        row = SupplyRecord.objects.filter(ledger_id=self._ledger_id).first()
        return _to_int(row.total_supply) if row else 0

    # ── Replay ────────────────────────────────────────────────

    def truncate(self) -> None:
        with transaction.atomic():
            WhitelistEntryRecord.objects.filter(ledger_id=self._ledger_id).delete()
            SpendingAllowanceRecord.objects.filter(ledger_id=self._ledger_id).delete()
            SupplyRecord.objects.filter(ledger_id=self._ledger_id).delete()
            self._accounts_qs().delete()
        self._applied = 0

    def rebuild(self, events: Iterable[dict]) -> int:
        with transaction.atomic():
            return super().rebuild(events)


# ══════════════════════════════════════════════════════════════
# EVENT LOG
# ══════════════════════════════════════════════════════════════

class DbEventLog:
    """
    Hash-chained event log of one ledger in glc_ledger_events.

    Usage:
        log = DbEventLog(ledger_id, subscriber_registry=subscribers)
        result = log(event_data=event, context=None, registry=types)
    """

    def __init__(
        self,
        ledger_id: uuid.UUID,
        subscriber_registry: Optional[SubscriberRegistry] = None,
    ):
        if not isinstance(ledger_id, uuid.UUID):
            raise ValueError("ledger_id must be UUID.")
        self._ledger_id = ledger_id
        self._subscriber_registry = subscriber_registry

    def __call__(
        self,
        event_data: dict,
        context: Any = None,
        registry: Any = None,
        **kwargs: Any,
    ) -> PersistResult:
        return self.persist_event(event_data, registry=registry)

    def _records(self):
        return LedgerEventRecord.objects.filter(ledger_id=self._ledger_id)

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

        if event_data["ledger_id"] != self._ledger_id:
            return PersistResult(
                accepted=False,
                code=PersistRejectionCode.LEDGER_MISMATCH,
                message=(
                    f"Event ledger_id ({event_data['ledger_id']}) does not "
                    f"belong to this log ({self._ledger_id})."
                ),
            )

        with transaction.atomic():
            if LedgerEventRecord.objects.filter(
                event_id=event_data["event_id"]
            ).exists():
                return PersistResult(
                    accepted=False,
                    code=PersistRejectionCode.DUPLICATE_EVENT,
                    message=f"Event {event_data['event_id']} already recorded.",
                )

            last = (
                self._records()
                .select_for_update()
                .order_by("-sequence")
                .first()
            )
            sequence = last.sequence + 1 if last else 0
            previous_hash = last.event_hash if last else GENESIS_HASH

            stored = copy.deepcopy(event_data)
            stored["sequence"] = sequence
            stored["previous_event_hash"] = previous_hash
            stored["event_hash"] = compute_event_hash(
                hashed_body(stored), previous_hash
            )

            LedgerEventRecord.objects.create(
                event_id=stored["event_id"],
                ledger_id=stored["ledger_id"],
                sequence=sequence,
                event_type=event_type,
                event_version=stored.get("event_version", 1),
                source_engine=stored.get("source_engine", "ledger"),
                actor_id=stored["actor_id"],
                correlation_id=stored["correlation_id"],
                causation_id=stored.get("causation_id"),
                payload=stored["payload"],
                created_at=stored["created_at"],
                previous_event_hash=previous_hash,
                event_hash=stored["event_hash"],
            )

            if self._subscriber_registry is not None:
                published = copy.deepcopy(stored)
                subscribers = self._subscriber_registry
                transaction.on_commit(lambda: dispatch(published, subscribers))

        logger.debug(
            f"Recorded {event_type} #{sequence} (event_id: {stored['event_id']})"
        )
        return PersistResult(accepted=True, event=copy.deepcopy(stored))

    # ── Queries ───────────────────────────────────────────────

    def all_events(self) -> tuple[dict[str, Any], ...]:
        return tuple(
            record.to_event_data()
            for record in self._records().order_by("sequence")
        )

    def events_of_type(self, event_type: str) -> tuple[dict[str, Any], ...]:
        return tuple(
            record.to_event_data()
            for record in self._records().filter(event_type=event_type).order_by("sequence")
        )

    @property
    def last_hash(self) -> str:
        last = self._records().order_by("-sequence").first()
        return last.event_hash if last else GENESIS_HASH

    @property
    def event_count(self) -> int:
        return self._records().count()

    def verify(self) -> ChainVerification:
        return verify_hash_chain(self.all_events())
