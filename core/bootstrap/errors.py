"""
GLC Bootstrap - System Errors
=============================
If a ledger invariant is violated at startup,
the ledger must refuse to serve.
"""


class SystemBootstrapError(Exception):
    """
    Raised when a critical ledger invariant is violated during boot.

    If this exception is raised:
    - The ledger MUST NOT start
    - No fallback
    - No warning-only mode
    """

    def __init__(self, invariant: str, detail: str):
        self.invariant = invariant
        self.detail = detail
        super().__init__(
            f"GLC BOOTSTRAP FAILURE: {invariant}: {detail}"
        )
