"""
GLC Event Store - Hash-Chain Verifier
=====================================
Walks a recorded event sequence and checks that every event links
to its predecessor and that every event_hash is correctly computed.

No auto-correct. The first broken link is reported, never repaired.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from core.event_store.hashing.errors import HashRejectionCode
from core.event_store.hashing.hasher import (
    GENESIS_HASH,
    compute_event_hash,
    hashed_body,
)


@dataclass(frozen=True)
class ChainVerification:
    valid: bool
    checked: int
    broken_at: Optional[int] = None
    code: Optional[str] = None
    message: str = ""


def verify_hash_chain(events: Iterable[Mapping[str, Any]]) -> ChainVerification:
    """
    Verify hash-chain integrity of an ordered event sequence.

    Checks for every event:
    1. previous_event_hash equals the prior event's event_hash
    2. event_hash equals the recomputed hash
    """
    expected_previous = GENESIS_HASH
    checked = 0

    for index, event in enumerate(events):
        if event.get("previous_event_hash") != expected_previous:
            return ChainVerification(
                valid=False,
                checked=checked,
                broken_at=index,
                code=HashRejectionCode.HASH_CHAIN_BROKEN,
                message=(
                    f"Event {index} links to "
                    f"'{event.get('previous_event_hash')}', "
                    f"expected '{expected_previous}'."
                ),
            )

        computed = compute_event_hash(hashed_body(event), expected_previous)
        if event.get("event_hash") != computed:
            return ChainVerification(
                valid=False,
                checked=checked,
                broken_at=index,
                code=HashRejectionCode.HASH_COMPUTATION_MISMATCH,
                message=(
                    f"Event {index} hash '{event.get('event_hash')}' does "
                    f"not match computed '{computed}'."
                ),
            )

        expected_previous = computed
        checked += 1

    return ChainVerification(valid=True, checked=checked)
