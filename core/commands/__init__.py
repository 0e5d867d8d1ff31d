"""
GLC Command Layer - Public API
==============================
Every ledger mutation begins as a Command.
Every Command produces exactly one Outcome.
Only ACCEPTED commands change state and record an event.
"""

from core.commands.base import (
    Command,
    build_command,
    derive_rejection_event_type,
    derive_source_engine,
)
from core.commands.outcomes import (
    CommandOutcome,
    CommandStatus,
)
from core.commands.rejection import (
    PolicyRejection,
    ReasonCode,
    RejectionReason,
)
from core.commands.validator import (
    CommandContextProtocol,
    CommandValidationError,
    validate_command,
)
from core.commands.dispatcher import (
    CommandDispatcher,
    PolicyEvaluator,
)
from core.commands.bus import (
    CommandBus,
    CommandBusError,
    CommandResult,
    NoHandlerRegistered,
)

__all__ = [
    # ── Base ──────────────────────────────────────────────────
    "Command",
    "build_command",
    "derive_rejection_event_type",
    "derive_source_engine",
    # ── Outcomes ──────────────────────────────────────────────
    "CommandOutcome",
    "CommandStatus",
    # ── Rejection ─────────────────────────────────────────────
    "PolicyRejection",
    "RejectionReason",
    "ReasonCode",
    # ── Validator ─────────────────────────────────────────────
    "CommandContextProtocol",
    "CommandValidationError",
    "validate_command",
    # ── Dispatcher ────────────────────────────────────────────
    "CommandDispatcher",
    "PolicyEvaluator",
    # ── Bus ────────────────────────────────────────────────────
    "CommandBus",
    "CommandBusError",
    "CommandResult",
    "NoHandlerRegistered",
]
