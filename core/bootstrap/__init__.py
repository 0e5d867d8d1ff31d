"""
GLC Bootstrap - Ledger Self-Defense
===================================
Ensures a ledger never serves commands from an inconsistent state.
"""

from core.bootstrap.errors import SystemBootstrapError
from core.bootstrap.self_check import run_bootstrap_checks, run_ledger_self_check

__all__ = [
    "SystemBootstrapError",
    "run_bootstrap_checks",
    "run_ledger_self_check",
]
