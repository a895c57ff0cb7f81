"""Utilities for resolving system-level .env paths consistently across OSes.

Provides helpers to locate the OS user configuration directory for Ocularr
and to construct the system `.env` file path. This centralizes path logic so
settings and the database default location agree on one directory.
"""

import os
import sys
from pathlib import Path


def get_system_env_dir() -> Path:
    """Return the OS user configuration directory for Ocularr.

    - macOS: ~/Library/Application Support/Ocularr
    - Linux: ~/.config/ocularr
    - Windows: %APPDATA%\\Ocularr
    """
    override = os.getenv("OCULARR_HOME")
    if override:
        return Path(override)
    home = Path.home()
    if os.name == "nt":
        appdata = os.getenv("APPDATA")
        base = Path(appdata) if appdata else (home / "AppData" / "Roaming")
        return base / "Ocularr"
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / "Ocularr"
    return home / ".config" / "ocularr"


def get_system_env_path() -> Path:
    """Return the full path to the system `.env` file."""
    return get_system_env_dir() / ".env"


def ensure_system_env_dir() -> Path:
    """Ensure the system config directory exists and return it."""
    d = get_system_env_dir()
    d.mkdir(parents=True, exist_ok=True)
    return d


def debug_mode_enabled() -> bool:
    """Return whether debug mode is enabled via `OCULARR_DEBUG`."""
    flag = os.getenv("OCULARR_DEBUG", "false")
    return str(flag).lower() == "true"
