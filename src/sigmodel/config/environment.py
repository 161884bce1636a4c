"""
Environment Variable Handling.

Loads ``.env`` files with python-dotenv so ``${VAR}`` references and
``SIGMODEL_*`` overrides in the configuration can come from them.
"""

import logging
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Track whether dotenv has been loaded
_dotenv_loaded: bool = False


def load_environment(env_file: str = ".env") -> bool:
    """Load a .env file into os.environ once per process.

    Values already present in the environment take precedence over the file.

    Args:
        env_file: Path to .env file (relative or absolute)

    Returns:
        True if a .env file was found and loaded, False otherwise
    """
    global _dotenv_loaded

    if _dotenv_loaded:
        return True

    env_paths = [
        Path(env_file),  # Relative to cwd
        Path.cwd() / env_file,  # Explicit cwd
    ]

    _dotenv_loaded = True
    for env_path in env_paths:
        if env_path.exists():
            load_dotenv(env_path, override=False)
            logger.debug(f"Loaded environment from {env_path}")
            return True

    # No .env file found, that's okay - use defaults
    return False


def reset_environment() -> None:
    """Forget that the .env file was loaded.

    Useful for testing.
    """
    global _dotenv_loaded
    _dotenv_loaded = False
