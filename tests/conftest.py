"""Shared fixtures for the Skate test suite."""

import asyncio
import time
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from skate.config import PresentationSettings
from skate.main import create_app

SLIDES = ("intro.html", "middle.html", "end.html")
PASSWORD = "x"


@pytest.fixture
def slides_root(tmp_path: Path) -> Path:
    """A presentation directory holding three slides and one asset."""
    for number, slide in enumerate(SLIDES):
        (tmp_path / slide).write_text(f"<h1>Slide {number}</h1>", encoding="utf-8")
    (tmp_path / "logo.txt").write_text("skate", encoding="utf-8")
    return tmp_path


@pytest.fixture
def settings(slides_root: Path) -> PresentationSettings:
    return PresentationSettings(
        name="Demo Deck",
        slides=SLIDES,
        slide_ratio=(4, 3),
        password=PASSWORD,
        root=slides_root,
    )


@pytest.fixture
def app(settings: PresentationSettings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll ``predicate`` from a synchronous test until it holds."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        time.sleep(0.01)


async def async_wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll ``predicate`` from a coroutine test until it holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)
