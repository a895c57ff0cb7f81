from .env import ensure_system_env_dir, get_system_env_dir, get_system_env_path
from .ts import current_season_year, utc_now


def resolve_db_path() -> str:
    """Default SQLite file location inside the system config directory."""
    return str(get_system_env_dir() / "ocularr.db")


__all__ = [
    "current_season_year",
    "ensure_system_env_dir",
    "get_system_env_dir",
    "get_system_env_path",
    "resolve_db_path",
    "utc_now",
]
