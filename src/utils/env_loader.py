"""Environment loading utility for the entire project.
Ensures environment variables are loaded from .env files.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from log_config import log_manager

logger = log_manager.get_logger("EnvLoader")


def find_env_file() -> str | None:
    """Find .env file in common locations.

    Returns:
        Path to the first .env file found, or None if not found.
    """
    project_root = Path(__file__).resolve().parent.parent.parent  # utils -> src -> project_root

    search_paths = [
        project_root / ".env",
        project_root / "src" / "domains" / "jira" / ".env",
        Path.cwd() / ".env",
        Path.home() / ".env",
    ]

    for env_path in search_paths:
        if env_path.is_file():
            return str(env_path)

    return None


def load_env_file(env_file_path: str | None = None) -> bool:
    """Load environment variables from a .env file without overriding existing ones.

    Args:
        env_file_path: Path to the .env file. If None, searches common locations.

    Returns:
        True if a file was loaded.
    """
    env_file_path = env_file_path or find_env_file()
    if not env_file_path or not Path(env_file_path).is_file():
        logger.debug("No .env file found in common locations")
        return False

    load_dotenv(env_file_path, override=False)
    logger.debug(f"Loaded environment variables from {env_file_path}")
    return True


def ensure_env_loaded(required_vars: list[str]) -> list[str]:
    """Ensure environment variables are loaded.
    Call this at the beginning of commands that need environment variables.

    Args:
        required_vars: Environment variable names the command needs.

    Returns:
        The names still missing after loading, for the caller to report.
    """
    missing_vars = [var for var in required_vars if not os.getenv(var)]
    if missing_vars:
        load_env_file()
        missing_vars = [var for var in required_vars if not os.getenv(var)]
        if missing_vars:
            logger.warning(f"Required environment variables still missing: {missing_vars}")
    return missing_vars


def ensure_jira_env_loaded() -> list[str]:
    """Ensure JIRA-specific environment variables are loaded."""
    return ensure_env_loaded(["JIRA_URL", "JIRA_USER_EMAIL", "JIRA_API_TOKEN"])
