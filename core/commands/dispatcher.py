"""
GLC Command Layer - Command Dispatcher
======================================
Accept Command → Validate → Authorize → Evaluate Policies → Outcome.

The Dispatcher is the DECISION MAKER for everything that does not
depend on account state. It decides ACCEPTED or REJECTED.

The Dispatcher DOES NOT:
- Persist events
- Read or write account state
- Execute ledger logic

Account-state policies (blacklist, whitelist, balances) run inside
the engine service, under the account locks, so the state they read
cannot go stale before it is changed.

Policy evaluation is pluggable: policies are callables returning
Optional[RejectionReason]. First rejection wins.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from core.commands.base import Command
from core.commands.outcomes import CommandOutcome
from core.commands.rejection import RejectionReason
from core.commands.validator import (
    CommandContextProtocol,
    CommandValidationError,
    validate_command,
)
from core.policy.permission_policy import permission_authorization_guard

logger = logging.getLogger("glc.commands")


# A policy is a callable:
#   (Command, context) → Optional[RejectionReason]
#   Returns None if policy passes, RejectionReason if it rejects.
PolicyEvaluator = Callable[
    [Command, CommandContextProtocol],
    Optional[RejectionReason],
]


class CommandDispatcher:
    """
    Evaluate a command through validation, authorization and policies.

    Lifecycle:
    1. Validate command structure + context
    2. Authorize actor (administrator capability for ADMIN_REQUIRED)
    3. Evaluate registered policies (in order)
    4. Produce CommandOutcome (ACCEPTED or REJECTED)

    Usage:
        dispatcher = CommandDispatcher(
            context=ledger_context,
            permission_provider=provider,
        )
        outcome = dispatcher.dispatch(command)
    """

    def __init__(
        self,
        context: CommandContextProtocol,
        permission_provider=None,
    ):
        self._context = context
        self._permission_provider = permission_provider
        self._policies: List[PolicyEvaluator] = []

    @property
    def context(self) -> CommandContextProtocol:
        return self._context

    def register_policy(self, policy: PolicyEvaluator) -> None:
        """Register a policy evaluator. Evaluated in registration order."""
        if not callable(policy):
            raise TypeError(
                f"Policy must be callable, got {type(policy).__name__}."
            )
        self._policies.append(policy)

        policy_name = getattr(policy, "__qualname__", str(policy))
        logger.debug(f"Policy registered: {policy_name}")

    def dispatch(self, command: Command) -> CommandOutcome:
        """
        Evaluate command and produce outcome.

        Returns:
            CommandOutcome - never None, never ambiguous.
        """
        now = datetime.now(timezone.utc)

        # ── Step 1: Structural validation ─────────────────────
        try:
            validate_command(command, self._context)
        except CommandValidationError as exc:
            logger.info(
                f"Command {getattr(command, 'command_id', None)} validation "
                f"failed: [{exc.code}] {exc.message}"
            )
            return CommandOutcome.rejected(
                command_id=command.command_id,
                reason=RejectionReason(
                    code=exc.code,
                    message=exc.message,
                    policy_name="command_validator",
                ),
                occurred_at=now,
            )

        # ── Step 2: Authorization ─────────────────────────────
        rejection = permission_authorization_guard(
            command,
            self._context,
            provider=self._permission_provider,
        )
        if rejection is not None:
            logger.info(
                f"Command {command.command_id} ({command.command_type}) "
                f"denied for actor '{command.actor_id}': "
                f"[{rejection.code}] {rejection.message}"
            )
            return CommandOutcome.rejected(
                command_id=command.command_id,
                reason=rejection,
                occurred_at=now,
            )

        # ── Step 3: Policy evaluation ─────────────────────────
        for policy in self._policies:
            rejection = policy(command, self._context)
            if rejection is None:
                continue
            if not isinstance(rejection, RejectionReason):
                raise TypeError(
                    f"Policy must return RejectionReason or None, "
                    f"got {type(rejection).__name__}."
                )

            logger.info(
                f"Command {command.command_id} rejected by "
                f"policy '{rejection.policy_name}': "
                f"[{rejection.code}] {rejection.message}"
            )
            return CommandOutcome.rejected(
                command_id=command.command_id,
                reason=rejection,
                occurred_at=now,
            )

        logger.debug(f"Command {command.command_id} ACCEPTED")
        return CommandOutcome.accepted(
            command_id=command.command_id,
            occurred_at=now,
        )
