"""Application settings.

Settings come from three layers, later ones winning:

1. :data:`DEFAULTS`
2. ``settings.json`` in the user config directory
3. ``POSADMIN_*`` environment variables (see :data:`ENV_OVERRIDES`)
"""

from __future__ import annotations

import json
import os
from typing import Any

from loguru import logger

from .paths import SETTINGS_FILE, atomic_write

DEFAULT_API_URL = "http://localhost:4000"

DEFAULTS: dict[str, Any] = {
    "api_url": DEFAULT_API_URL,
    "device_id": "WEB",
    "timeout": 30.0,
    "refresh_path": "/auth/refresh",
    "logout_path": "/auth/logout",
    "tenant_param": "brandId",
    "refreshable_reasons": ("TOKEN_EXPIRED",),
    "debug": False,
}

ENV_OVERRIDES: dict[str, str] = {
    "POSADMIN_API_URL": "api_url",
    "POSADMIN_DEVICE_ID": "device_id",
    "POSADMIN_TIMEOUT": "timeout",
}


class AppSettings:
    """Load and persist user settings as a flat dict."""

    @staticmethod
    def _read_file() -> dict[str, Any]:
        if not SETTINGS_FILE.exists():
            return {}
        try:
            data = json.loads(SETTINGS_FILE.read_text(encoding="utf-8"))
        except Exception as exc:
            logger.warning(f"Failed to read settings from {SETTINGS_FILE}: {exc}")
            return {}
        return data if isinstance(data, dict) else {}

    @staticmethod
    def load() -> dict[str, Any]:
        """Return the effective settings."""
        settings = dict(DEFAULTS)
        settings.update(AppSettings._read_file())
        for env_name, key in ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if not value:
                continue
            if key == "timeout":
                try:
                    settings[key] = float(value)
                except ValueError:
                    logger.warning(f"Ignoring non-numeric {env_name}={value!r}")
                continue
            settings[key] = value
        settings["api_url"] = str(settings["api_url"]).rstrip("/")
        return settings

    @staticmethod
    def save(settings: dict[str, Any]) -> None:
        """Merge *settings* into the settings file."""
        current = AppSettings._read_file()
        current.update(settings)
        atomic_write(SETTINGS_FILE, json.dumps(current, indent=2, sort_keys=True))

    @staticmethod
    def get(key: str, default: Any = None) -> Any:
        return AppSettings.load().get(key, default)

    @staticmethod
    def set(key: str, value: Any) -> None:
        AppSettings.save({key: value})
