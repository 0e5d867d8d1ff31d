"""
GLC Core Config - Ledger Settings
=================================
Token metadata and operational limits for a ledger instance.

Values come from the GATED_LEDGER dict in Django settings when
Django is configured; otherwise the defaults below apply.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

DEFAULT_NAME = "Gated Ledger Token"
DEFAULT_SYMBOL = "GLT"
DEFAULT_DECIMALS = 18
DEFAULT_WHITELIST_BATCH_LIMIT = 200


@dataclass(frozen=True)
class LedgerConfig:
    name: str = DEFAULT_NAME
    symbol: str = DEFAULT_SYMBOL
    decimals: int = DEFAULT_DECIMALS
    whitelist_batch_limit: int = DEFAULT_WHITELIST_BATCH_LIMIT

    def __post_init__(self) -> None:
        if not self.name or not isinstance(self.name, str):
            raise ValueError("name must be a non-empty string.")
        if not self.symbol or not isinstance(self.symbol, str):
            raise ValueError("symbol must be a non-empty string.")
        if (
            isinstance(self.decimals, bool)
            or not isinstance(self.decimals, int)
            or not 0 <= self.decimals <= 255
        ):
            raise ValueError(f"decimals must be an int in [0, 255], got {self.decimals!r}.")
        if (
            isinstance(self.whitelist_batch_limit, bool)
            or not isinstance(self.whitelist_batch_limit, int)
            or self.whitelist_batch_limit < 1
        ):
            raise ValueError("whitelist_batch_limit must be a positive int.")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LedgerConfig":
        return cls(
            name=data.get("NAME", DEFAULT_NAME),
            symbol=data.get("SYMBOL", DEFAULT_SYMBOL),
            decimals=data.get("DECIMALS", DEFAULT_DECIMALS),
            whitelist_batch_limit=data.get(
                "WHITELIST_BATCH_LIMIT", DEFAULT_WHITELIST_BATCH_LIMIT
            ),
        )


def load_ledger_config(overrides: Optional[Mapping[str, Any]] = None) -> LedgerConfig:
    """
    Read GATED_LEDGER from Django settings, falling back to defaults
    when settings are not configured. Explicit overrides win.
    """
    from django.conf import ENVIRONMENT_VARIABLE, settings

    data: dict = {}
    if settings.configured or os.environ.get(ENVIRONMENT_VARIABLE):
        data.update(getattr(settings, "GATED_LEDGER", {}) or {})
    if overrides:
        data.update(overrides)
    return LedgerConfig.from_mapping(data)
