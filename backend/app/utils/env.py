"""Environment helpers for local development.

WHAT:
    Loads a local `.env` file into os.environ and reads mandatory variables.
WHY:
    Developers keep DATABASE_URL / JWT_SECRET in backend/.env while production
    exports real environment variables, which must never be overwritten.
"""

import logging
import os

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def load_env_file() -> bool:
    """Load variables from `.env` without overwriting existing ones.

    Returns:
        True if a .env file was found and read.
    """
    loaded = load_dotenv(override=False)
    if loaded:
        logger.info("[ENV] Loaded local .env file (existing variables kept)")
    else:
        logger.debug("[ENV] No local .env file found")
    return loaded


def require_env(name: str) -> str:
    """Return a mandatory environment variable, consulting `.env` once.

    Raises:
        RuntimeError: If the variable is unset after loading `.env`.
    """
    value = os.getenv(name)
    if not value:
        load_env_file()
        value = os.getenv(name)
    if not value:
        raise RuntimeError(
            f"{name} is not set. Ensure backend/.env is created or the env var is exported."
        )
    return value
