"""
Skate - presentation server with live slide synchronization.

This module builds the FastAPI application for one presentation. Viewers open
the root page, which shows the current slide and keeps a WebSocket open to the
server. Anyone holding the presentation password can move every connected
viewer to another slide at once.

Key Features:
- FastAPI web framework with async support
- WebSocket fan-out of slide changes to all viewers
- Password-gated slide control
- Static file serving for assets referenced by the slides

Usage:
    Run through the command line: skate on --config skate.json
    Or build the app yourself: create_app(load_settings("skate.json"))
"""

import logging
import os

from fastapi import FastAPI, WebSocket, status
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from skate.config import PresentationSettings
from skate.routers import presentation_router
from skate.state import ServerState

_log = logging.getLogger(__name__)


class PresentationFiles(StaticFiles):
    """
    Static files from the presentation directory.

    Hidden files and directories (a .env holding the password, .git) are
    never served, and WebSocket requests are refused with a policy violation.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "websocket":
            _log.debug(f"Refused WebSocket to unknown path {scope['path']}")
            await WebSocket(scope, receive, send).close(code=status.WS_1008_POLICY_VIOLATION)
            return
        await super().__call__(scope, receive, send)

    async def get_response(self, path: str, scope: Scope) -> Response:
        if any(part.startswith(".") for part in path.split(os.sep)):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return await super().get_response(path, scope)


def create_app(settings: PresentationSettings) -> FastAPI:
    """
    Create the application serving one presentation.

    Args:
        settings: Resolved presentation settings.

    Returns:
        FastAPI: Application with the presentation routes, and a static file
                 fallback rooted at the presentation directory.
    """
    app = FastAPI(title=settings.name)
    app.state.skate = ServerState.from_settings(settings)

    app.include_router(router=presentation_router)

    # Mounted last so it only sees paths no route claimed
    app.mount("/", PresentationFiles(directory=settings.root), name="assets")

    _log.debug(f"Created application for {settings.name!r} rooted at {settings.root}")
    return app
