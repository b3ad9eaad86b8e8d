"""Re-export all posadmin data models for convenient access."""

from posadmin.models.session import Brand, SessionData, SessionUser
from posadmin.models.user import CredentialPair, LoginResult

__all__ = [
    # Session models
    "Brand",
    "SessionData",
    "SessionUser",
    # User models
    "CredentialPair",
    "LoginResult",
]
