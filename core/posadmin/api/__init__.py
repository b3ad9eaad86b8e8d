"""posadmin API layer -- re-exports the session client and its errors."""

from posadmin.api.client import SessionClient
from posadmin.api.errors import (
    LoginError,
    PosAdminError,
    RefreshFailed,
    RequestFailed,
    SessionExpired,
)
from posadmin.api.expiry import SessionExpiry

__all__ = [
    "LoginError",
    "PosAdminError",
    "RefreshFailed",
    "RequestFailed",
    "SessionClient",
    "SessionExpired",
    "SessionExpiry",
]
