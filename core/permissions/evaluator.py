"""
GLC Permissions - Deterministic Permission Evaluator
====================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.commands.base import Command
from core.commands.rejection import ReasonCode
from core.identity.requirements import HOLDER_ALLOWED
from core.permissions.constants import GRANT_STATUS_ACTIVE
from core.permissions.provider import PermissionProvider
from core.permissions.registry import resolve_required_permission


@dataclass(frozen=True)
class PermissionEvaluationResult:
    allowed: bool
    rejection_code: Optional[str] = None
    message: str = ""


class PermissionEvaluator:
    @staticmethod
    def _allow() -> PermissionEvaluationResult:
        return PermissionEvaluationResult(allowed=True)

    @staticmethod
    def _deny(code: str, message: str) -> PermissionEvaluationResult:
        return PermissionEvaluationResult(
            allowed=False,
            rejection_code=code,
            message=message,
        )

    @staticmethod
    def evaluate(
        command: Command,
        provider: PermissionProvider | None,
    ) -> PermissionEvaluationResult:
        """
        Evaluate command authorization against role/permission grants.

        HOLDER_ALLOWED commands only need the authenticated actor the
        Command already carries. Everything else is deny-by-default.
        """
        if command.authority_requirement == HOLDER_ALLOWED:
            return PermissionEvaluator._allow()

        required_permission = resolve_required_permission(command.command_type)
        if required_permission is None:
            return PermissionEvaluator._deny(
                ReasonCode.PERMISSION_MAPPING_MISSING,
                (
                    "No permission mapping for command_type "
                    f"'{command.command_type}'."
                ),
            )

        if provider is None:
            return PermissionEvaluator._deny(
                ReasonCode.PERMISSION_DENIED,
                "Permission provider is not configured.",
            )

        grants = provider.get_grants_for_actor(
            actor_id=command.actor_id,
            ledger_id=command.ledger_id,
        )
        if not grants:
            return PermissionEvaluator._deny(
                ReasonCode.PERMISSION_DENIED,
                (
                    f"Actor '{command.actor_id}' has no active "
                    f"grants for ledger_id '{command.ledger_id}'."
                ),
            )

        for grant in sorted(grants, key=lambda g: g.sort_key()):
            if grant.status != GRANT_STATUS_ACTIVE:
                continue
            if grant.ledger_id != command.ledger_id:
                continue

            role = provider.get_role(grant.role_id)
            if role is None:
                continue

            if required_permission in role.permissions:
                return PermissionEvaluator._allow()

        return PermissionEvaluator._deny(
            ReasonCode.PERMISSION_DENIED,
            (
                f"Actor '{command.actor_id}' is missing permission "
                f"'{required_permission}'."
            ),
        )
