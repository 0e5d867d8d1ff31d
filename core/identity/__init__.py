"""
GLC Identity - Public API
=========================
Authority requirement constants.
"""

from core.identity.requirements import (
    ADMIN_REQUIRED,
    HOLDER_ALLOWED,
    VALID_AUTHORITY_REQUIREMENTS,
)

__all__ = [
    "ADMIN_REQUIRED",
    "HOLDER_ALLOWED",
    "VALID_AUTHORITY_REQUIREMENTS",
]
