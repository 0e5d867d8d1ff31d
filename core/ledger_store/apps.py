"""
GLC Core - Ledger Store App Configuration
=========================================
Durable ledger state for deployments that run under Django.

This app:
- Stores the hash-chained ledger event log
- Stores the account projection (balances, flags, whitelist entries,
  spending allowances, total supply)

This app does NOT:
- Decide whether a command is admissible (engines.ledger does)
- Interpret events beyond applying them to the projection
"""

from django.apps import AppConfig


class LedgerStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.ledger_store"
    label = "ledger_store"
    verbose_name = "GLC Ledger Store"
