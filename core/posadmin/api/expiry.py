"""Session-expiry signal.

A single observable flag the rest of the application watches to know
when to send the user back to the login screen.  The flag only flips
once per expiry event, so a burst of failing requests produces one
notification.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable
from urllib.parse import quote

from loguru import logger

DEFAULT_MESSAGE = "Session has expired. Please log in again."


@dataclass(frozen=True)
class ExpiryState:
    expired: bool = False
    message: str = ""


ExpiryListener = Callable[[ExpiryState], None]


class SessionExpiry:
    """Observable "session ended" flag."""

    def __init__(self) -> None:
        self._state = ExpiryState()
        self._listeners: list[ExpiryListener] = []

    @property
    def state(self) -> ExpiryState:
        return self._state

    @property
    def expired(self) -> bool:
        return self._state.expired

    def expire(self, message: str | None = None) -> bool:
        """Mark the session as expired.

        Returns ``True`` if this call performed the transition and
        ``False`` if the session was already marked expired.
        """
        if self._state.expired:
            return False
        self._state = ExpiryState(expired=True, message=message or DEFAULT_MESSAGE)
        logger.warning(f"Session expired: {self._state.message}")
        self._emit()
        return True

    def reset(self) -> None:
        if not self._state.expired:
            return
        self._state = ExpiryState()
        self._emit()

    def subscribe(self, listener: ExpiryListener) -> Callable[[], None]:
        """Register *listener*; the returned callable unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener(self._state)


def login_redirect_url(current_path: str = "/", login_path: str = "/login") -> str:
    """Build the login URL that returns the user to *current_path*."""
    return f"{login_path}?reason=sessionExpired&redirect={quote(current_path, safe='')}"
