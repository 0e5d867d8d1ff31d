"""
GLC Policy - Public API
=======================
Cross-engine command guards evaluated by the dispatcher.
"""

from core.policy.permission_policy import permission_authorization_guard

__all__ = [
    "permission_authorization_guard",
]
