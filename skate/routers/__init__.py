"""
Router module for Skate.

Exports:
    presentation_router: APIRouter serving the viewer page, slides, viewer
                         connections and slide control
"""

from .presentation import presentation_router

__all__ = ["presentation_router"]
