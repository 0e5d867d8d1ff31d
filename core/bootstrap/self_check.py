"""
GLC Bootstrap - Self-Check Orchestrator
=======================================
Runs invariant checks before a ledger serves commands.
If any check fails, SystemBootstrapError propagates and the ledger
refuses to start.

No auto-fix. No fallback. No silence.
"""

import logging

from core.bootstrap.invariants import (
    check_blocked_within_balance,
    check_event_chain,
    check_immutability_guards,
    check_ledger_tables,
    check_supply_matches_balances,
)

logger = logging.getLogger("glc.bootstrap")


def run_ledger_self_check(store, event_log=None):
    """
    Verify one ledger's projection (and its event log, if given).
    Works with the in-memory and the database stores alike.
    """
    check_blocked_within_balance(store)
    check_supply_matches_balances(store)
    if event_log is not None:
        check_event_chain(event_log)


def run_bootstrap_checks():
    """
    Database-wide checks, called once at startup via AppConfig.ready().
    Every ledger found in the event log is checked in turn.
    """
    from core.ledger_store.models import LedgerEventRecord
    from core.ledger_store.provider import DbEventLog, DbLedgerProjectionStore

    logger.info("═══ GLC Bootstrap Self-Check Starting ═══")

    check_ledger_tables()
    check_immutability_guards()

    ledger_ids = (
        LedgerEventRecord.objects.values_list("ledger_id", flat=True)
        .distinct()
        .order_by("ledger_id")
    )
    for ledger_id in ledger_ids:
        logger.info(f"Checking ledger {ledger_id}")
        run_ledger_self_check(
            DbLedgerProjectionStore(ledger_id),
            DbEventLog(ledger_id),
        )

    logger.info("═══ GLC Bootstrap Self-Check PASSED ═══")
