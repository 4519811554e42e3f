"""Authentication: passwords, session tokens and the request guard.

Routes and the service are imported from their modules directly to keep
this package importable from models and configuration code.
"""

from tms.core.auth.context import AuthContext, AuthState, TenantScope
from tms.core.auth.schemas import ExternalAssertion, SessionClaims, TokenData, TokenPair


__all__ = [
    "AuthContext",
    "AuthState",
    "ExternalAssertion",
    "SessionClaims",
    "TenantScope",
    "TokenData",
    "TokenPair",
]
