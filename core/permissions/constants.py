"""
GLC Permissions - Canonical Constants
=====================================
"""

PERMISSION_SUPPLY_MANAGE = "ledger.supply.manage"
PERMISSION_COMPLIANCE_MANAGE = "ledger.compliance.manage"

VALID_PERMISSIONS = frozenset(
    {
        PERMISSION_SUPPLY_MANAGE,
        PERMISSION_COMPLIANCE_MANAGE,
    }
)

ADMINISTRATOR_PERMISSIONS = (
    PERMISSION_COMPLIANCE_MANAGE,
    PERMISSION_SUPPLY_MANAGE,
)

GRANT_STATUS_ACTIVE = "ACTIVE"
GRANT_STATUS_INACTIVE = "INACTIVE"

VALID_GRANT_STATUSES = frozenset(
    {
        GRANT_STATUS_ACTIVE,
        GRANT_STATUS_INACTIVE,
    }
)
