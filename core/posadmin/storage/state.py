"""Persisted key/value state shared by the session components.

``StateStore`` is the desktop counterpart of browser session storage: a
flat mapping of string keys to string values kept in a JSON file.  The
whole mapping is rewritten on every change through :func:`atomic_write`,
so a multi-key :meth:`StateStore.update` lands as a single write.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from loguru import logger

from .paths import STATE_FILE, atomic_write


class StateStore:
    """JSON-file backed string key/value store.

    Parameters
    ----------
    path:
        File to persist into.  Defaults to :data:`paths.STATE_FILE`.  Pass
        ``None`` explicitly via :meth:`in_memory` for a store that never
        touches disk.
    """

    def __init__(self, path: Path | None = STATE_FILE) -> None:
        self._path = path
        self._data: dict[str, str] = self._load()

    @classmethod
    def in_memory(cls, initial: Mapping[str, str] | None = None) -> StateStore:
        """Return a store that lives only for the current process."""
        store = cls(path=None)
        store._data.update(initial or {})
        return store

    @property
    def path(self) -> Path | None:
        return self._path

    # -- persistence --------------------------------------------------------

    def _load(self) -> dict[str, str]:
        if self._path is None or not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except Exception as exc:
            logger.warning(f"Failed to load state from {self._path}: {exc}")
            return {}
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring malformed state file {self._path}")
            return {}
        return {str(k): str(v) for k, v in raw.items() if v is not None}

    def _flush(self) -> None:
        if self._path is None:
            return
        atomic_write(self._path, json.dumps(self._data, indent=2, sort_keys=True))

    # -- public interface ---------------------------------------------------

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def set(self, key: str, value: str | None) -> None:
        """Store *value* under *key*; ``None`` removes the key."""
        self.update({key: value})

    def update(self, values: Mapping[str, str | None]) -> None:
        """Apply several key changes in one write.

        Keys mapped to ``None`` are removed.
        """
        for key, value in values.items():
            if value is None:
                self._data.pop(key, None)
            else:
                self._data[key] = value
        self._flush()

    def remove(self, *keys: str) -> None:
        """Delete *keys*; missing keys are ignored."""
        if not any(k in self._data for k in keys):
            return
        self.update({k: None for k in keys})

    def snapshot(self) -> dict[str, str]:
        """Return a copy of the current contents."""
        return dict(self._data)
