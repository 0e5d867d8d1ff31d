"""
GLC Identity - Authority Requirement Constants
==============================================
Authority requirement is command-owned.

ADMIN_REQUIRED  - the actor must hold the ledger administrator permission.
HOLDER_ALLOWED  - any authenticated holder identity may issue the command.
"""

ADMIN_REQUIRED = "ADMIN_REQUIRED"
HOLDER_ALLOWED = "HOLDER_ALLOWED"

VALID_AUTHORITY_REQUIREMENTS = frozenset(
    {ADMIN_REQUIRED, HOLDER_ALLOWED}
)
