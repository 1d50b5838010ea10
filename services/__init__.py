"""
Service layer: the session authority and the stores it talks to.
"""
from services.errors import AuthenticationError, InternalError, ServiceError, ValidationError
from services.session_authority import LoginResult, RefreshResult, SessionAuthority, SessionSettings
from services.stores import CredentialStore, RefreshTokenStore

__all__ = [
    "AuthenticationError",
    "CredentialStore",
    "InternalError",
    "LoginResult",
    "RefreshResult",
    "RefreshTokenStore",
    "ServiceError",
    "SessionAuthority",
    "SessionSettings",
    "ValidationError",
]
