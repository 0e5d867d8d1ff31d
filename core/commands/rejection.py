"""
GLC Command Layer - Rejection Model
===================================
Structured rejection reasons for denied commands.

This is NOT an event. A rejected command changes nothing and
emits nothing; the reason travels back to the caller inside the
CommandOutcome.

Every rejection must be:
- Deterministic (same input → same rejection)
- Auditable (code + message + policy)
- Machine-readable (code)
- Human-readable (message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


# ══════════════════════════════════════════════════════════════
# REJECTION REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for command rejection.

    Fields:
        code:        Machine-readable rejection code (e.g. 'BLACKLISTED').
        message:     Human-readable explanation.
        policy_name: Name of the policy that caused rejection.
        subject:     Identity the rejection is about, when one applies
                     (e.g. the blacklisted address).
    """

    code: str
    message: str
    policy_name: str
    subject: Optional[str] = None

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

        if self.subject is not None and not isinstance(self.subject, str):
            raise ValueError("subject must be a string or None.")

    def to_dict(self) -> dict:
        """Serialize for logs and API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
            "subject": self.subject,
        }


# ══════════════════════════════════════════════════════════════
# STANDARD REJECTION CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Known core rejection codes. Extensible by engines.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Context / authorization ───────────────────────────────
    NO_ACTIVE_CONTEXT = "NO_ACTIVE_CONTEXT"
    INVALID_CONTEXT = "INVALID_CONTEXT"
    LEDGER_ID_MISMATCH = "LEDGER_ID_MISMATCH"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    PERMISSION_MAPPING_MISSING = "PERMISSION_MAPPING_MISSING"

    # ── Command structure ─────────────────────────────────────
    INVALID_COMMAND_STRUCTURE = "INVALID_COMMAND_STRUCTURE"
    INVALID_COMMAND_TYPE = "INVALID_COMMAND_TYPE"
    INVALID_NAMESPACE = "INVALID_NAMESPACE"

    # ── General ───────────────────────────────────────────────
    POLICY_VIOLATION = "POLICY_VIOLATION"


# ══════════════════════════════════════════════════════════════
# POLICY REJECTION (raised by engine services)
# ══════════════════════════════════════════════════════════════

class PolicyRejection(Exception):
    """
    Raised by an engine service when a domain policy rejects an
    accepted command during execution.

    The CommandBus turns it into a REJECTED outcome. Raising it
    must happen before any state is touched.
    """

    def __init__(self, reason: RejectionReason):
        if not isinstance(reason, RejectionReason):
            raise TypeError(
                f"reason must be RejectionReason, got {type(reason).__name__}."
            )
        self.reason = reason
        super().__init__(f"[{reason.code}] {reason.message}")
