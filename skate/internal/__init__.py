"""
Internal utilities package for Skate.

Exports:
    load_env_file: Function to load environment variables from .env files
"""

from .dotenv import load_env_file

__all__ = [
    "load_env_file",
]
