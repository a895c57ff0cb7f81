"""Ocularr - movie club cycles, scoring and season standings."""

__version__ = "0.1.0"
__author__ = "Ocularr Team"
__description__ = "Movie club cycles, blind rankings and season standings"

__all__ = [
    "__version__",
    "__author__",
    "__description__",
]

import os
import shutil
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from ocularr.utils.env import (
    debug_mode_enabled,
    ensure_system_env_dir,
    get_system_env_path,
)


def load_env_file_early() -> None:
    """Load environment variables from the system application directory.

    Behavior:
    - Loads from the system path (e.g., ~/.config/ocularr/.env on Linux)
    - Auto-creates it from .env.example when the example ships with the checkout
    - Variables already exported in the process win over the file
    """
    project_root = Path(__file__).resolve().parent.parent.parent
    sys_env = get_system_env_path()
    example_file = project_root / ".env.example"

    if not sys_env.exists() and example_file.exists():
        try:
            ensure_system_env_dir()
            shutil.copy(example_file, sys_env)
            if debug_mode_enabled():
                logger.info("Created system .env from example: {}", sys_env)
        except OSError as e:
            logger.warning("Failed to prepare system .env: {}", e)

    if sys_env.exists():
        load_dotenv(sys_env, override=False)
        if debug_mode_enabled():
            logger.info("Environment variables loaded from {}", sys_env)
            logger.info("  DATABASE_URL: {}", os.environ.get("DATABASE_URL", "not set"))
    elif debug_mode_enabled():
        logger.info("No system .env file found at {}", sys_env)


# Load environment variables immediately when package is imported
load_env_file_early()
