import asyncio
import logging
from typing import Any
from unittest.mock import AsyncMock

import pytest

from skate.sync import Broadcaster, ConnectionRegistry, ConnectionState, ViewerSession
from tests.conftest import async_wait_for

DISCONNECT = {"type": "websocket.disconnect", "code": 1000}


class FakeWebSocket:
    """In-memory stand-in for a Starlette WebSocket."""

    def __init__(self) -> None:
        self.inbound: asyncio.Queue[Any] = asyncio.Queue()
        self.sent: list[str] = []
        self.accepted = False

    async def accept(self) -> None:
        self.accepted = True

    async def receive(self) -> dict[str, Any]:
        message = await self.inbound.get()
        if isinstance(message, Exception):
            raise message
        return message

    async def send_text(self, data: str) -> None:
        self.sent.append(data)


@pytest.mark.asyncio
async def test_session_registers_relays_and_deregisters():
    registry = ConnectionRegistry()
    websocket = FakeWebSocket()
    session = ViewerSession(websocket, registry)

    task = asyncio.create_task(session.run())
    await async_wait_for(lambda: session.state is ConnectionState.OPEN)

    assert websocket.accepted
    assert session.connection_id in registry

    await Broadcaster(registry).dispatch(2)
    await async_wait_for(lambda: websocket.sent == ["2"])

    websocket.inbound.put_nowait(DISCONNECT)
    await asyncio.wait_for(task, timeout=2)

    assert session.state is ConnectionState.CLOSED
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_session_relays_successive_slides_in_order():
    registry = ConnectionRegistry()
    broadcaster = Broadcaster(registry)
    websocket = FakeWebSocket()
    session = ViewerSession(websocket, registry)

    task = asyncio.create_task(session.run())
    await async_wait_for(lambda: session.state is ConnectionState.OPEN)

    for slide in (1, 2, 3):
        await broadcaster.dispatch(slide)
        await async_wait_for(lambda: len(websocket.sent) == slide)

    websocket.inbound.put_nowait(DISCONNECT)
    await asyncio.wait_for(task, timeout=2)

    assert websocket.sent == ["1", "2", "3"]


@pytest.mark.asyncio
async def test_session_ignores_viewer_messages():
    registry = ConnectionRegistry()
    websocket = FakeWebSocket()
    session = ViewerSession(websocket, registry)

    task = asyncio.create_task(session.run())
    await async_wait_for(lambda: session.state is ConnectionState.OPEN)

    websocket.inbound.put_nowait({"type": "websocket.receive", "text": "5"})
    websocket.inbound.put_nowait({"type": "websocket.receive", "bytes": b"\x00"})
    await Broadcaster(registry).dispatch(1)
    await async_wait_for(lambda: websocket.sent == ["1"])

    assert session.state is ConnectionState.OPEN
    assert not task.done()

    websocket.inbound.put_nowait(DISCONNECT)
    await asyncio.wait_for(task, timeout=2)


@pytest.mark.asyncio
async def test_receive_error_is_treated_as_close():
    registry = ConnectionRegistry()
    websocket = FakeWebSocket()
    session = ViewerSession(websocket, registry)

    task = asyncio.create_task(session.run())
    await async_wait_for(lambda: session.state is ConnectionState.OPEN)

    websocket.inbound.put_nowait(OSError("socket went away"))
    await asyncio.wait_for(task, timeout=2)

    assert session.state is ConnectionState.CLOSED
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_runtime_error_closes_session_with_warning(caplog):
    registry = ConnectionRegistry()
    websocket = FakeWebSocket()
    session = ViewerSession(websocket, registry)

    task = asyncio.create_task(session.run())
    await async_wait_for(lambda: session.state is ConnectionState.OPEN)

    with caplog.at_level(logging.WARNING, logger="skate.sync.session"):
        websocket.inbound.put_nowait(RuntimeError("unexpected state"))
        await asyncio.wait_for(task, timeout=2)

    assert session.state is ConnectionState.CLOSED
    assert len(registry) == 0
    assert "closed on runtime error: unexpected state" in caplog.text


@pytest.mark.asyncio
async def test_teardown_consumes_failed_arm_after_send_error():
    registry = ConnectionRegistry()
    websocket = FakeWebSocket()
    websocket.send_text = AsyncMock(side_effect=OSError("broken pipe"))
    session = ViewerSession(websocket, registry)

    task = asyncio.create_task(session.run())
    await async_wait_for(lambda: session.state is ConnectionState.OPEN)

    # The inbound arm fails in the same step the outbound send breaks.
    websocket.inbound.put_nowait(OSError("reset"))
    await Broadcaster(registry).dispatch(4)
    await asyncio.wait_for(task, timeout=2)

    assert session.state is ConnectionState.CLOSED
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_send_error_is_treated_as_close():
    registry = ConnectionRegistry()
    websocket = FakeWebSocket()
    websocket.send_text = AsyncMock(side_effect=OSError("broken pipe"))
    session = ViewerSession(websocket, registry)

    task = asyncio.create_task(session.run())
    await async_wait_for(lambda: session.state is ConnectionState.OPEN)

    await Broadcaster(registry).dispatch(0)
    await asyncio.wait_for(task, timeout=2)

    websocket.send_text.assert_awaited_once_with("0")
    assert session.state is ConnectionState.CLOSED
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_failed_handshake_never_registers():
    registry = ConnectionRegistry()
    registry.register = AsyncMock(wraps=registry.register)
    websocket = FakeWebSocket()
    websocket.accept = AsyncMock(side_effect=OSError("handshake failed"))
    session = ViewerSession(websocket, registry)

    await session.run()

    registry.register.assert_not_awaited()
    assert session.connection_id is None
    assert session.state is ConnectionState.CLOSED


@pytest.mark.asyncio
async def test_close_deregisters_exactly_once():
    registry = ConnectionRegistry()
    registry.deregister = AsyncMock(wraps=registry.deregister)
    websocket = FakeWebSocket()
    session = ViewerSession(websocket, registry)

    task = asyncio.create_task(session.run())
    await async_wait_for(lambda: session.state is ConnectionState.OPEN)
    connection_id = session.connection_id

    websocket.inbound.put_nowait(DISCONNECT)
    await asyncio.wait_for(task, timeout=2)
    await session.close()

    registry.deregister.assert_awaited_once_with(connection_id)


@pytest.mark.asyncio
async def test_one_failing_viewer_does_not_affect_another():
    registry = ConnectionRegistry()
    broadcaster = Broadcaster(registry)
    healthy = FakeWebSocket()
    broken = FakeWebSocket()
    broken.send_text = AsyncMock(side_effect=OSError("closed"))
    healthy_session = ViewerSession(healthy, registry)
    broken_session = ViewerSession(broken, registry)

    healthy_task = asyncio.create_task(healthy_session.run())
    broken_task = asyncio.create_task(broken_session.run())
    await async_wait_for(lambda: len(registry) == 2)

    await broadcaster.dispatch(1)
    await asyncio.wait_for(broken_task, timeout=2)
    await async_wait_for(lambda: healthy.sent == ["1"])

    assert healthy_session.state is ConnectionState.OPEN
    assert len(registry) == 1

    await broadcaster.dispatch(2)
    await async_wait_for(lambda: healthy.sent == ["1", "2"])

    healthy.inbound.put_nowait(DISCONNECT)
    await asyncio.wait_for(healthy_task, timeout=2)
