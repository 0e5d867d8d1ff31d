"""
GLC Ledger Store - Models
=========================
Relational layout of one or more ledgers, each scoped by ledger_id.

Amounts span the unsigned 256-bit range, wider than any portable
integer column, so they are stored as base-10 strings (AMOUNT_DIGITS
digits at most) and converted at the store boundary.

LedgerEventRecord is append-only: saved once, never updated or
deleted. The projection tables are rebuildable from it.
"""

import uuid

from django.db import models

AMOUNT_DIGITS = 78


def amount_field(**kwargs):
    return models.CharField(max_length=AMOUNT_DIGITS, default="0", **kwargs)


# ══════════════════════════════════════════════════════════════
# EVENT LOG
# ══════════════════════════════════════════════════════════════

class LedgerEventRecord(models.Model):
    event_id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique event identifier. Enforces idempotency.",
    )
    ledger_id = models.UUIDField()
    sequence = models.PositiveBigIntegerField(
        help_text="Position in the ledger's event log, from 0.",
    )
    event_type = models.CharField(max_length=255)
    event_version = models.PositiveSmallIntegerField(default=1)
    source_engine = models.CharField(max_length=100)
    actor_id = models.CharField(max_length=255)
    correlation_id = models.UUIDField()
    causation_id = models.UUIDField(null=True, blank=True)
    payload = models.JSONField()
    created_at = models.DateTimeField()
    received_at = models.DateTimeField(auto_now_add=True)
    previous_event_hash = models.CharField(max_length=64)
    event_hash = models.CharField(max_length=64)

    class Meta:
        db_table = "glc_ledger_events"
        ordering = ["ledger_id", "sequence"]
        constraints = [
            models.UniqueConstraint(
                fields=("ledger_id", "sequence"),
                name="uq_ledger_evt_sequence",
            ),
        ]
        indexes = [
            models.Index(fields=["event_type"], name="idx_ledger_evt_type"),
            models.Index(fields=["correlation_id"], name="idx_ledger_evt_corr"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise PermissionError(
                "Ledger events are immutable. Cannot update a recorded event."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionError("Ledger events are never deleted.")

    def to_event_data(self) -> dict:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "event_version": self.event_version,
            "ledger_id": self.ledger_id,
            "source_engine": self.source_engine,
            "actor_id": self.actor_id,
            "correlation_id": self.correlation_id,
            "causation_id": self.causation_id,
            "payload": self.payload,
            "created_at": self.created_at,
            "sequence": self.sequence,
            "previous_event_hash": self.previous_event_hash,
            "event_hash": self.event_hash,
        }

    def __str__(self):
        return f"[{self.event_type}] #{self.sequence} {self.event_id}"


# ══════════════════════════════════════════════════════════════
# PROJECTION
# ══════════════════════════════════════════════════════════════

class AccountRecord(models.Model):
    ledger_id = models.UUIDField()
    address = models.CharField(max_length=255)
    balance = amount_field()
    blocked_balance = amount_field()
    blacklisted = models.BooleanField(default=False)
    whitelist_enabled = models.BooleanField(default=False)

    class Meta:
        db_table = "glc_ledger_accounts"
        ordering = ["ledger_id", "address"]
        constraints = [
            models.UniqueConstraint(
                fields=("ledger_id", "address"),
                name="uq_ledger_account",
            ),
        ]

    def __str__(self):
        return f"{self.address} ({self.balance}, blocked {self.blocked_balance})"


class WhitelistEntryRecord(models.Model):
    ledger_id = models.UUIDField()
    account = models.CharField(max_length=255)
    counterparty = models.CharField(max_length=255)
    allowance = amount_field()

    class Meta:
        db_table = "glc_ledger_whitelist_entries"
        ordering = ["ledger_id", "account", "counterparty"]
        constraints = [
            models.UniqueConstraint(
                fields=("ledger_id", "account", "counterparty"),
                name="uq_ledger_whitelist_entry",
            ),
        ]


class SpendingAllowanceRecord(models.Model):
    ledger_id = models.UUIDField()
    owner = models.CharField(max_length=255)
    spender = models.CharField(max_length=255)
    amount = amount_field()

    class Meta:
        db_table = "glc_ledger_spending_allowances"
        ordering = ["ledger_id", "owner", "spender"]
        constraints = [
            models.UniqueConstraint(
                fields=("ledger_id", "owner", "spender"),
                name="uq_ledger_spending_allowance",
            ),
        ]


class SupplyRecord(models.Model):
    ledger_id = models.UUIDField(primary_key=True)
    total_supply = amount_field()

    class Meta:
        db_table = "glc_ledger_supply"
