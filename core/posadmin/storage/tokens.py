"""Persistent storage for the access/refresh credential pair.

Tokens live in the shared :class:`~posadmin.storage.state.StateStore`
under two canonical keys.  Earlier builds of the admin client stored the
access token under several other names; those are read once, migrated to
the canonical key and then dropped.
"""

from __future__ import annotations

from loguru import logger

from ..models.user import CredentialPair
from .state import StateStore

ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"
LEGACY_ACCESS_TOKEN_KEYS: tuple[str, ...] = ("token", "pos_token", "access_token")


class TokenStore:
    """Owns the persisted :class:`CredentialPair`.

    Parameters
    ----------
    state:
        Backing key/value store.
    access_key, refresh_key:
        Canonical key names.
    legacy_access_keys:
        Older access token key names, checked in order when the canonical
        key is missing.
    """

    def __init__(
        self,
        state: StateStore,
        access_key: str = ACCESS_TOKEN_KEY,
        refresh_key: str = REFRESH_TOKEN_KEY,
        legacy_access_keys: tuple[str, ...] = LEGACY_ACCESS_TOKEN_KEYS,
    ) -> None:
        self._state = state
        self.access_key = access_key
        self.refresh_key = refresh_key
        self.legacy_access_keys = tuple(legacy_access_keys)
        self._credentials: CredentialPair | None = self._load()

    def _load(self) -> CredentialPair | None:
        access = self._state.get(self.access_key)
        if not access:
            access = self._migrate_legacy()
        if not access:
            return None
        return CredentialPair(
            access_token=access,
            refresh_token=self._state.get(self.refresh_key) or None,
        )

    def _migrate_legacy(self) -> str | None:
        for key in self.legacy_access_keys:
            value = self._state.get(key)
            if value:
                logger.info(f"Migrating access token from legacy key '{key}'")
                changes: dict[str, str | None] = {k: None for k in self.legacy_access_keys}
                changes[self.access_key] = value
                self._state.update(changes)
                return value
        return None

    @property
    def credentials(self) -> CredentialPair | None:
        return self._credentials

    def save(self, pair: CredentialPair) -> None:
        """Replace the stored pair with *pair* in a single write."""
        self._state.update(
            {
                self.access_key: pair.access_token,
                self.refresh_key: pair.refresh_token,
            }
        )
        self._credentials = pair
        logger.debug("Credentials saved")

    def clear(self) -> None:
        """Forget the pair, including any legacy keys still lying around."""
        self._state.remove(self.access_key, self.refresh_key, *self.legacy_access_keys)
        self._credentials = None
        logger.debug("Credentials cleared")
