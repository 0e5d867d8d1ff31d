"""
GLC Core Config - Public API
============================
Ledger settings loaded from Django settings or defaults.
"""

from core.config.ledger import LedgerConfig, load_ledger_config

__all__ = [
    "LedgerConfig",
    "load_ledger_config",
]
