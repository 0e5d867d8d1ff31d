"""
GLC Context - Public API
========================
Canonical ledger context.
"""

from core.context.ledger_context import LedgerContext

__all__ = [
    "LedgerContext",
]
