"""
Presentation and slide control routes.

This module provides the FastAPI routes a running presentation is made of:
the viewer page, the viewer WebSocket that receives slide changes, the slide
pages themselves, and the password-protected control endpoint that moves every
viewer to a new slide.

Routes:
- GET /: Viewer page (iframe showing the current slide plus the sync script)
- WS /connect: Viewer connection receiving slide numbers
- GET /page/{page}: Slide HTML, wrapping around past the last slide
- POST /goto: Move all viewers to a slide (JSON body with page and password)
- GET /goto/{page}: Same as POST /goto with the password as a query parameter

Slide changes are broadcast to viewers as plain text frames holding the
decimal slide number. Viewers then load /page/{number} into their iframe.
"""

import html
import logging
import os
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Path, Request, Response, WebSocket, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from skate.state import ServerState, get_state
from skate.sync import ViewerSession

_log = logging.getLogger(__name__)

FRONTEND_DIR = os.path.join(os.path.dirname(__file__), "..", "frontend")
templates = Jinja2Templates(directory=FRONTEND_DIR)

presentation_router = APIRouter()


class GotoRequest(BaseModel):
    page: int = Field(ge=0)
    password: str


@presentation_router.get("/", response_class=HTMLResponse)
async def index(request: Request, state: ServerState = Depends(get_state)) -> Response:
    """
    Serve the viewer page.

    The page shows slide 0 in an iframe and opens a WebSocket to /connect to
    follow slide changes. When client control is enabled, the page also lets
    the viewer step through slides locally with the arrow keys.

    Args:
        request: FastAPI Request object, needed by the template renderer.
        state: Server state of the running presentation.

    Returns:
        Response: Rendered viewer HTML.
    """
    settings = state.settings
    width, height = settings.slide_ratio
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "name": settings.name,
            "background": settings.background,
            "aspect_ratio": f"{width}/{height}",
            "control": settings.control,
            "last_slide": settings.slide_count - 1,
        },
    )


@presentation_router.websocket("/connect")
async def connect(websocket: WebSocket, state: ServerState = Depends(get_state)) -> None:
    """Hold a viewer connection open and relay slide changes to it."""
    await ViewerSession(websocket, state.registry).run()


@presentation_router.get("/page/{page}", response_class=HTMLResponse)
async def page(page: int = Path(ge=0), state: ServerState = Depends(get_state)) -> HTMLResponse:
    """
    Serve one slide.

    The page number is taken modulo the number of slides, so any non-negative
    number selects a slide. A slide that can't be read yields a 404 whose body
    is the reason.

    Args:
        page: Requested slide number.
        state: Server state of the running presentation.

    Returns:
        HTMLResponse: The slide's HTML, or the read error with status 404.
    """
    path = state.settings.slide_path(page)
    try:
        content = await run_in_threadpool(path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _log.error(f"Failed to read slide {page} from {path}: {e}")
        return HTMLResponse(
            f"<html><body><h1>{html.escape(str(e))}</h1></body></html>",
            status_code=status.HTTP_404_NOT_FOUND,
        )
    return HTMLResponse(content)


async def _goto(page: int, password: str, state: ServerState) -> dict[str, Any]:
    if not state.gate.authorize(password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password"
        )
    delivered = await state.broadcaster.dispatch(page)
    return {"page": page, "viewers": delivered}


@presentation_router.post("/goto")
async def goto(body: GotoRequest, state: ServerState = Depends(get_state)) -> dict[str, Any]:
    """
    Move every viewer to a slide.

    Args:
        body: Requested slide number and the presentation password.
        state: Server state of the running presentation.

    Returns:
        dict[str, Any]: The slide number and how many viewers were notified.

    Raises:
        HTTPException: 401 if the password doesn't match.
    """
    return await _goto(body.page, body.password, state)


@presentation_router.get("/goto/{page}")
async def goto_link(
    page: int = Path(ge=0),
    password: str = "",
    state: ServerState = Depends(get_state),
) -> dict[str, Any]:
    """Link-friendly form of POST /goto, e.g. /goto/3?password=secret."""
    return await _goto(page, password, state)
