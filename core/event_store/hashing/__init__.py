"""
GLC Event Store - Hash-Chain Public API
=======================================
"""

from core.event_store.hashing.errors import HashRejectionCode
from core.event_store.hashing.hasher import (
    GENESIS_HASH,
    canonical_serialize,
    compute_event_hash,
    hashed_body,
)
from core.event_store.hashing.verifier import (
    ChainVerification,
    verify_hash_chain,
)

__all__ = [
    "GENESIS_HASH",
    "canonical_serialize",
    "compute_event_hash",
    "hashed_body",
    "verify_hash_chain",
    "ChainVerification",
    "HashRejectionCode",
]
