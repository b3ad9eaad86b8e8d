"""Exceptions raised by the posadmin API layer."""

from __future__ import annotations


class PosAdminError(Exception):
    """Base class for all posadmin client errors."""


class RequestFailed(PosAdminError):
    """A request came back with a non-2xx status that is not recoverable."""

    def __init__(self, status: int, body: str = "") -> None:
        self.status = status
        self.body = body
        super().__init__(f"HTTP {status}: {body}" if body else f"HTTP {status}")


class SessionExpired(PosAdminError):
    """The session cannot be recovered; the user must sign in again."""

    def __init__(self, message: str = "Session has expired. Please log in again.") -> None:
        self.message = message
        super().__init__(message)


class RefreshFailed(PosAdminError):
    """The token refresh call failed.

    Only used inside the client; callers of ``request`` see
    :class:`SessionExpired` instead.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


class LoginError(PosAdminError):
    """The server rejected a login attempt."""

    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)
