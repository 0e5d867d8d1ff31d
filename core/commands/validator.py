"""
GLC Command Layer - Command Validator
=====================================
Validates command structure and ledger context.

This validator does NOT:
- Emit events
- Read account state
- Evaluate ledger policies

It only checks:
- Command structure is valid
- LedgerContext is active
- ledger_id matches context
- command_type format is correct (engine.domain.action.request)

If invalid → CommandValidationError (structured, auditable).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.commands.base import Command
from core.commands.rejection import ReasonCode


# ══════════════════════════════════════════════════════════════
# LEDGER CONTEXT PROTOCOL (dependency injection)
# ══════════════════════════════════════════════════════════════

@runtime_checkable
class CommandContextProtocol(Protocol):
    """Context interface required by command validation."""

    def has_active_context(self) -> bool:
        """Is there an active ledger context?"""
        ...

    def get_active_ledger_id(self):
        """Return the active ledger_id (UUID)."""
        ...


# ══════════════════════════════════════════════════════════════
# VALIDATION ERRORS
# ══════════════════════════════════════════════════════════════

class CommandValidationError(Exception):
    """Structured validation failure for commands."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


# ══════════════════════════════════════════════════════════════
# VALIDATOR
# ══════════════════════════════════════════════════════════════

def validate_command(
    command: Command,
    context: CommandContextProtocol,
) -> None:
    """
    Validate command structure and ledger context.

    Checks (in order):
    1. Command is a Command instance
    2. LedgerContext is active
    3. ledger_id matches active context
    4. command_type format is correct
    5. command_type namespace matches source_engine

    Raises:
        CommandValidationError: If any check fails.
    """

    # ── 1. Type check ─────────────────────────────────────────
    if not isinstance(command, Command):
        raise CommandValidationError(
            code=ReasonCode.INVALID_COMMAND_STRUCTURE,
            message=f"Expected Command, got {type(command).__name__}.",
        )

    # ── 2. Context shape + active context ────────────────────
    if context is None or not isinstance(context, CommandContextProtocol):
        raise CommandValidationError(
            code=ReasonCode.INVALID_CONTEXT,
            message=(
                "Invalid ledger context. Commands require "
                "LedgerContext-compatible context."
            ),
        )

    if not context.has_active_context():
        raise CommandValidationError(
            code=ReasonCode.NO_ACTIVE_CONTEXT,
            message="No active ledger context. Commands require context.",
        )

    # ── 3. ledger_id matches context ──────────────────────────
    active_ledger_id = context.get_active_ledger_id()
    if command.ledger_id != active_ledger_id:
        raise CommandValidationError(
            code=ReasonCode.LEDGER_ID_MISMATCH,
            message=(
                f"Command ledger_id ({command.ledger_id}) does not "
                f"match active context ({active_ledger_id})."
            ),
        )

    # ── 4. command_type format ────────────────────────────────
    if not command.command_type.endswith(".request"):
        raise CommandValidationError(
            code=ReasonCode.INVALID_COMMAND_TYPE,
            message=(
                f"command_type '{command.command_type}' must end "
                f"with '.request'."
            ),
        )

    parts = command.command_type.split(".")
    if len(parts) < 4:
        raise CommandValidationError(
            code=ReasonCode.INVALID_COMMAND_TYPE,
            message=(
                f"command_type '{command.command_type}' must follow "
                f"engine.domain.action.request format."
            ),
        )

    # ── 5. Namespace: first segment must match source_engine ──
    if parts[0] != command.source_engine:
        raise CommandValidationError(
            code=ReasonCode.INVALID_NAMESPACE,
            message=(
                f"command_type namespace '{parts[0]}' does not match "
                f"source_engine '{command.source_engine}'."
            ),
        )
