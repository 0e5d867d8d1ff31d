"""
GLC Permissions - Command to Permission Registry
================================================
Only ADMIN_REQUIRED commands are mapped. HOLDER_ALLOWED commands
never reach the registry.
"""

from __future__ import annotations

from core.permissions.constants import (
    PERMISSION_COMPLIANCE_MANAGE,
    PERMISSION_SUPPLY_MANAGE,
)

COMMAND_PERMISSION_MAP = {
    "ledger.supply.mint.request": PERMISSION_SUPPLY_MANAGE,
    "ledger.blacklist.add.request": PERMISSION_COMPLIANCE_MANAGE,
    "ledger.blacklist.remove.request": PERMISSION_COMPLIANCE_MANAGE,
    "ledger.whitelist.enable.request": PERMISSION_COMPLIANCE_MANAGE,
    "ledger.whitelist.disable.request": PERMISSION_COMPLIANCE_MANAGE,
    "ledger.whitelist.add.request": PERMISSION_COMPLIANCE_MANAGE,
    "ledger.whitelist.remove.request": PERMISSION_COMPLIANCE_MANAGE,
    "ledger.whitelist.batch_add.request": PERMISSION_COMPLIANCE_MANAGE,
    "ledger.whitelist.batch_remove.request": PERMISSION_COMPLIANCE_MANAGE,
    "ledger.balance.block.request": PERMISSION_COMPLIANCE_MANAGE,
    "ledger.balance.unblock.request": PERMISSION_COMPLIANCE_MANAGE,
}


def resolve_required_permission(command_type: str) -> str | None:
    """Resolve required permission for a command type."""
    return COMMAND_PERMISSION_MAP.get(command_type)
