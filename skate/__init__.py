"""
Skate - serve HTML slides and keep every viewer on the same slide.

Exports:
    create_app: Build the FastAPI application for one presentation
    load_settings: Resolve presentation settings from file, environment and options
    PresentationSettings: Immutable settings a server is built from
"""

from .config import PresentationSettings, load_settings
from .main import create_app

__all__ = [
    "PresentationSettings",
    "create_app",
    "load_settings",
]
