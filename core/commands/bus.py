"""
GLC Command Layer - Command Bus
===============================
High-level orchestration of the command lifecycle.

Flow:
    1. Dispatch command → get Outcome
    2. If ACCEPTED → call engine service handler → handler records event
    3. If the handler raises PolicyRejection → REJECTED outcome
    4. If REJECTED → return the reason, record nothing

The CommandBus:
- Orchestrates, does not decide
- Delegates accepted commands to engine service handlers
- Guarantees: no silent path, every command yields a CommandResult

The CommandBus does NOT:
- Persist events (engine services do, only on success)
- Modify projections
- Contain engine-specific logic
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

from core.commands.base import Command, derive_rejection_event_type
from core.commands.dispatcher import CommandDispatcher
from core.commands.outcomes import CommandOutcome
from core.commands.rejection import PolicyRejection, RejectionReason

logger = logging.getLogger("glc.commands")


# ══════════════════════════════════════════════════════════════
# ENGINE SERVICE PROTOCOL
# ══════════════════════════════════════════════════════════════

class EngineServiceProtocol(Protocol):
    """
    Protocol for engine service handlers.

    The handler is responsible for:
    - Running state-dependent policies (raise PolicyRejection)
    - Building and persisting the accepted event
    - Applying the event to its projection
    """

    def execute(self, command: Command) -> Any:
        ...


# ══════════════════════════════════════════════════════════════
# COMMAND BUS ERRORS
# ══════════════════════════════════════════════════════════════

class CommandBusError(Exception):
    """Base error for command bus operations."""
    pass


class NoHandlerRegistered(CommandBusError):
    """No engine service handler registered for command type."""

    def __init__(self, command_type: str):
        self.command_type = command_type
        super().__init__(
            f"No engine service handler registered for "
            f"command type '{command_type}'."
        )


# ══════════════════════════════════════════════════════════════
# COMMAND BUS RESULT
# ══════════════════════════════════════════════════════════════

class CommandResult:
    """
    Result of CommandBus.handle(): wraps outcome + execution result.
    """

    def __init__(
        self,
        outcome: CommandOutcome,
        execution_result: Any = None,
    ):
        self.outcome = outcome
        self.execution_result = execution_result

    @property
    def is_accepted(self) -> bool:
        return self.outcome.is_accepted

    @property
    def is_rejected(self) -> bool:
        return self.outcome.is_rejected

    @property
    def reason(self) -> Optional[RejectionReason]:
        return self.outcome.reason

    @property
    def rejection_code(self) -> Optional[str]:
        if self.outcome.reason is None:
            return None
        return self.outcome.reason.code

    def __repr__(self) -> str:
        if self.is_accepted:
            return f"CommandResult(ACCEPTED, {self.execution_result!r})"
        return f"CommandResult(REJECTED, {self.rejection_code})"


# ══════════════════════════════════════════════════════════════
# COMMAND BUS
# ══════════════════════════════════════════════════════════════

class CommandBus:
    """
    Orchestration layer for command lifecycle.

    Usage:
        bus = CommandBus(dispatcher=dispatcher)
        bus.register_handler("ledger.transfer.execute.request", service)
        result = bus.handle(command)
    """

    def __init__(self, dispatcher: CommandDispatcher):
        self._dispatcher = dispatcher
        self._handlers: Dict[str, Any] = {}

    def register_handler(
        self,
        command_type: str,
        handler: Any,
    ) -> None:
        """
        Register engine service handler for a command type.

        Handler must implement EngineServiceProtocol (have .execute()).
        """
        if not command_type.endswith(".request"):
            raise ValueError(
                f"command_type '{command_type}' must end with '.request'."
            )

        if not hasattr(handler, "execute") or not callable(handler.execute):
            raise TypeError("Handler must have callable .execute() method.")

        self._handlers[command_type] = handler
        logger.debug(f"Handler registered: {command_type}")

    def has_handler(self, command_type: str) -> bool:
        return command_type in self._handlers

    def handle(self, command: Command) -> CommandResult:
        """
        Full command lifecycle:

        1. Dispatch → get Outcome (ACCEPTED/REJECTED)
        2. ACCEPTED → verify handler exists → execute
        3. Execution PolicyRejection → REJECTED, nothing recorded
        """
        outcome = self._dispatcher.dispatch(command)

        if outcome.is_rejected:
            return CommandResult(outcome=outcome)

        handler = self._handlers.get(command.command_type)
        if handler is None:
            raise NoHandlerRegistered(command.command_type)

        try:
            execution_result = handler.execute(command)
        except PolicyRejection as exc:
            logger.info(
                f"{derive_rejection_event_type(command.command_type)} "
                f"(command {command.command_id}, actor '{command.actor_id}'): "
                f"[{exc.reason.code}] {exc.reason.message}"
            )
            return CommandResult(
                outcome=CommandOutcome.rejected(
                    command_id=command.command_id,
                    reason=exc.reason,
                    occurred_at=datetime.now(timezone.utc),
                ),
            )

        logger.info(
            f"Command {command.command_id} ({command.command_type}) executed"
        )
        return CommandResult(
            outcome=outcome,
            execution_result=execution_result,
        )
