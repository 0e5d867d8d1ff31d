"""
GLC Permissions - Provider Protocol and In-Memory Provider
==========================================================
The ledger never decides who its administrators are. The caller
injects a provider; the permission guard asks it.
"""

from __future__ import annotations

import uuid
from typing import Iterable, Protocol

from core.permissions.constants import ADMINISTRATOR_PERMISSIONS
from core.permissions.models import LedgerGrant, Role

ADMINISTRATOR_ROLE_ID = "ledger-administrator"


class PermissionProvider(Protocol):
    def get_grants_for_actor(
        self,
        actor_id: str,
        ledger_id: uuid.UUID,
    ) -> tuple[LedgerGrant, ...]:
        ...

    def get_role(self, role_id: str) -> Role | None:
        ...


class InMemoryPermissionProvider:
    """
    Deterministic in-memory provider used for bootstrap/tests.
    """

    def __init__(
        self,
        roles: Iterable[Role] | None = None,
        grants: Iterable[LedgerGrant] | None = None,
    ):
        self._roles: dict[str, Role] = {}
        self._grants_by_actor_ledger: dict[
            tuple[str, uuid.UUID], tuple[LedgerGrant, ...]
        ] = {}

        for role in roles or ():
            if role.role_id in self._roles:
                raise ValueError(f"Duplicate role_id '{role.role_id}'.")
            self._roles[role.role_id] = role

        temp_index: dict[tuple[str, uuid.UUID], list[LedgerGrant]] = {}
        for grant in grants or ():
            key = (grant.actor_id, grant.ledger_id)
            temp_index.setdefault(key, []).append(grant)

        for key, key_grants in temp_index.items():
            ordered = tuple(sorted(key_grants, key=lambda g: g.sort_key()))
            self._grants_by_actor_ledger[key] = ordered

    def get_grants_for_actor(
        self,
        actor_id: str,
        ledger_id: uuid.UUID,
    ) -> tuple[LedgerGrant, ...]:
        return self._grants_by_actor_ledger.get(
            (actor_id, ledger_id), tuple()
        )

    def get_role(self, role_id: str) -> Role | None:
        return self._roles.get(role_id)


def single_administrator_provider(
    administrator_id: str,
    ledger_id: uuid.UUID,
) -> InMemoryPermissionProvider:
    """Provider for the common single-owner deployment."""
    role = Role(
        role_id=ADMINISTRATOR_ROLE_ID,
        permissions=ADMINISTRATOR_PERMISSIONS,
    )
    grant = LedgerGrant(
        actor_id=administrator_id,
        role_id=role.role_id,
        ledger_id=ledger_id,
    )
    return InMemoryPermissionProvider(roles=(role,), grants=(grant,))
