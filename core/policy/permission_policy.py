"""
GLC Policy - Permission Authorization Guard
===========================================
Deterministic deny-by-default administrator capability check.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.commands.base import Command
from core.commands.rejection import ReasonCode, RejectionReason
from core.identity.requirements import HOLDER_ALLOWED
from core.permissions.evaluator import PermissionEvaluator

logger = logging.getLogger("glc.commands")


def permission_authorization_guard(
    command: Command,
    context,
    provider=None,
) -> Optional[RejectionReason]:
    """
    Policy guard:
    - HOLDER_ALLOWED bypasses permission evaluation.
    - ADMIN_REQUIRED is denied unless the provider grants the
      mapped permission to command.actor_id on command.ledger_id.
    - A provider that raises is treated as a denial.
    """
    if command.authority_requirement == HOLDER_ALLOWED:
        return None

    try:
        result = PermissionEvaluator.evaluate(
            command=command,
            provider=provider,
        )
    except Exception as exc:
        logger.error(
            f"Permission provider failed for command {command.command_id}: {exc}",
            exc_info=True,
        )
        return RejectionReason(
            code=ReasonCode.PERMISSION_DENIED,
            message="Permission authorization check failed.",
            policy_name="permission_authorization_guard",
            subject=command.actor_id,
        )

    if result.allowed:
        return None

    return RejectionReason(
        code=result.rejection_code or ReasonCode.PERMISSION_DENIED,
        message=result.message or "Permission denied.",
        policy_name="permission_authorization_guard",
        subject=command.actor_id,
    )
