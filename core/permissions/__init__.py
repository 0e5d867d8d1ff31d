"""
GLC Permissions - Public API
============================
"""

from core.permissions.constants import (
    ADMINISTRATOR_PERMISSIONS,
    GRANT_STATUS_ACTIVE,
    GRANT_STATUS_INACTIVE,
    PERMISSION_COMPLIANCE_MANAGE,
    PERMISSION_SUPPLY_MANAGE,
)
from core.permissions.evaluator import (
    PermissionEvaluationResult,
    PermissionEvaluator,
)
from core.permissions.models import LedgerGrant, Role
from core.permissions.provider import (
    ADMINISTRATOR_ROLE_ID,
    InMemoryPermissionProvider,
    PermissionProvider,
    single_administrator_provider,
)
from core.permissions.registry import resolve_required_permission

__all__ = [
    "PERMISSION_SUPPLY_MANAGE",
    "PERMISSION_COMPLIANCE_MANAGE",
    "ADMINISTRATOR_PERMISSIONS",
    "ADMINISTRATOR_ROLE_ID",
    "GRANT_STATUS_ACTIVE",
    "GRANT_STATUS_INACTIVE",
    "Role",
    "LedgerGrant",
    "PermissionProvider",
    "InMemoryPermissionProvider",
    "single_administrator_provider",
    "PermissionEvaluator",
    "PermissionEvaluationResult",
    "resolve_required_permission",
]
