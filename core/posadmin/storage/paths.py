"""Cross-platform path management for posadmin.

Every persistent file location used by the client is defined here.
Directories are created lazily by the helpers below, so importing this
module never touches the filesystem.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

from platformdirs import user_config_dir

# ---------------------------------------------------------------------------
# Application identifier
# ---------------------------------------------------------------------------

APP_NAME = "posadmin"

# ---------------------------------------------------------------------------
# Base directories
# ---------------------------------------------------------------------------

_config_dir = Path(user_config_dir(APP_NAME))

CONFIG_DIR: Path = _config_dir

# ---------------------------------------------------------------------------
# Standard file locations
# ---------------------------------------------------------------------------

# Session-scoped key/value state (credentials, selected brand)
STATE_FILE = _config_dir / "state.json"
SETTINGS_FILE = _config_dir / "settings.json"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def ensure_parents(path: Path) -> Path:
    """Create all parent directories for *path* if they do not exist.

    Returns *path* unchanged so the call can be used inline.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        pass
    return path


def atomic_write(path: Path, data: Union[str, bytes]) -> None:
    """Write text *data* to *path* atomically (write-to-tmp then replace)."""
    tmp = path.with_suffix(path.suffix + ".tmp")
    ensure_parents(tmp)

    with tmp.open("w", encoding="utf-8") as fh:
        fh.write(data.decode() if isinstance(data, bytes) else data)

    try:
        os.replace(tmp, path)
    except OSError:
        try:
            tmp.unlink()
        except OSError:
            pass
        raise
