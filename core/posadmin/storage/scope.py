"""Tenant (brand) scope selection.

The selected brand id is persisted in the shared state store and
broadcast to subscribers at the moment it changes.  ``"ALL"`` means the
user has not narrowed requests to a single brand.
"""

from __future__ import annotations

from typing import Callable

from loguru import logger

from .state import StateStore

ALL_BRANDS = "ALL"
SELECTED_BRAND_KEY = "selectedBrandId"

ScopeListener = Callable[[str], None]


class TenantScope:
    """Observable holder of the selected brand id."""

    def __init__(self, state: StateStore, key: str = SELECTED_BRAND_KEY) -> None:
        self._state = state
        self._key = key
        self._listeners: list[ScopeListener] = []

    @property
    def value(self) -> str:
        return self._state.get(self._key) or ALL_BRANDS

    @property
    def is_scoped(self) -> bool:
        """``True`` when a specific brand is selected."""
        return self.value != ALL_BRANDS

    def select(self, brand_id: str | None) -> None:
        """Persist *brand_id* and notify subscribers if it changed.

        ``None`` or an empty string selects :data:`ALL_BRANDS`.
        """
        new = brand_id or ALL_BRANDS
        old = self.value
        if old == new:
            return
        self._state.set(self._key, new)
        logger.debug(f"Brand scope changed: {old} -> {new}")
        for listener in list(self._listeners):
            listener(new)

    def subscribe(self, listener: ScopeListener) -> Callable[[], None]:
        """Register *listener*; the returned callable unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
