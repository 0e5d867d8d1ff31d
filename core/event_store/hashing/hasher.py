"""
GLC Event Store - Hash Computation
==================================
Computes event_hash using SHA-256.

Formula:
    event_hash = SHA256(canonical_json(event body) + previous_event_hash)

The event body is the part of an event that describes what changed:
sequence, event_type, ledger_id, actor_id and payload.

Rules:
- Canonical JSON: sorted keys, no whitespace variability
- No salt, no randomness
- First event uses GENESIS_HASH as previous_event_hash
- Same input ALWAYS produces same output
"""

import hashlib
import json
from typing import Any, Mapping

GENESIS_HASH = "GENESIS"

HASHED_FIELDS = (
    "sequence",
    "event_type",
    "ledger_id",
    "actor_id",
    "payload",
)


def canonical_serialize(payload: Any) -> str:
    """
    Produce a deterministic JSON string.

    - Keys sorted alphabetically at all levels
    - separators=(',', ':')
    - ensure_ascii=True
    - str() for non-serializable types (UUID, datetime)
    """
    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
        default=str,
    )


def hashed_body(event_data: Mapping[str, Any]) -> dict:
    return {name: event_data.get(name) for name in HASHED_FIELDS}


def compute_event_hash(body: Any, previous_event_hash: str) -> str:
    """
    Compute SHA-256 hash for an event body.

    Returns:
        64-character lowercase hex SHA-256 digest.
    """
    canonical = canonical_serialize(body)
    hash_input = canonical + previous_event_hash
    return hashlib.sha256(hash_input.encode("utf-8")).hexdigest()
