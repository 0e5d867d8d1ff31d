"""
GLC Permissions - Immutable Role/Grant Models
=============================================
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from core.permissions.constants import (
    GRANT_STATUS_ACTIVE,
    VALID_GRANT_STATUSES,
    VALID_PERMISSIONS,
)


@dataclass(frozen=True)
class Role:
    role_id: str
    permissions: tuple[str, ...]

    def __post_init__(self):
        if not self.role_id or not isinstance(self.role_id, str):
            raise ValueError("role_id must be a non-empty string.")

        if not isinstance(self.permissions, tuple):
            raise ValueError("permissions must be a tuple.")

        normalized = tuple(sorted(set(self.permissions)))
        if not normalized:
            raise ValueError("permissions must contain at least one value.")

        for permission in normalized:
            if not isinstance(permission, str) or not permission:
                raise ValueError("permission values must be non-empty strings.")
            if permission not in VALID_PERMISSIONS:
                raise ValueError(
                    f"permission '{permission}' not valid. "
                    f"Must be one of: {sorted(VALID_PERMISSIONS)}"
                )

        object.__setattr__(self, "permissions", normalized)


@dataclass(frozen=True)
class LedgerGrant:
    """Role granted to an actor on one ledger."""

    actor_id: str
    role_id: str
    ledger_id: uuid.UUID
    status: str = GRANT_STATUS_ACTIVE

    def __post_init__(self):
        if not self.actor_id or not isinstance(self.actor_id, str):
            raise ValueError("actor_id must be a non-empty string.")

        if not self.role_id or not isinstance(self.role_id, str):
            raise ValueError("role_id must be a non-empty string.")

        if not isinstance(self.ledger_id, uuid.UUID):
            raise ValueError("ledger_id must be UUID.")

        if self.status not in VALID_GRANT_STATUSES:
            raise ValueError(
                f"status '{self.status}' not valid. "
                f"Must be one of: {sorted(VALID_GRANT_STATUSES)}"
            )

    def sort_key(self) -> tuple[str, str, str, str]:
        return (
            self.actor_id,
            str(self.ledger_id),
            self.role_id,
            self.status,
        )
