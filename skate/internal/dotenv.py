"""
Environment variable loading utilities.

This module loads ``KEY=value`` pairs from a .env file into the process
environment so Skate's ``SKATE_*`` settings can live next to a presentation
instead of on the command line.

Features:
- Ignores comments (lines starting with #) and blank lines
- Strips matching single or double quotes from values
- Leaves variables that are already set in the environment alone unless asked
"""

import logging
import os

_log = logging.getLogger(__name__)


def load_env_file(env_path: str = ".env", override: bool = False) -> dict[str, str]:
    """
    Load environment variables from an .env file.

    Args:
        env_path: Path to the .env file to load. Defaults to ".env".
        override: Replace variables that are already set in the environment.

    Returns:
        dict[str, str]: The variables that were written to the environment.

    Raises:
        FileNotFoundError: If the specified .env file doesn't exist.
        ValueError: If a line doesn't contain a valid key=value pair.

    Example:
        # .env file content:
        SKATE_PORT=8080
        SKATE_PASSWORD="hunter22"
        # This is a comment

        # Usage:
        load_env_file(".env")
    """
    loaded: dict[str, str] = {}
    with open(env_path, "r", encoding="utf-8") as f:
        for number, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                raise ValueError(f"{env_path}:{number}: expected KEY=value, got {line!r}")
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip()
            if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
                value = value[1:-1]
            if key in os.environ and not override:
                _log.debug(f"Keeping existing environment variable: {key}")
                continue
            os.environ[key] = value
            loaded[key] = value
            _log.info(f"Loaded environment variable: {key}")
    return loaded
