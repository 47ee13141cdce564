"""
Viewer connection lifecycle.

A ViewerSession drives one WebSocket from handshake to teardown:

- Connecting: the handshake is accepted and the connection is registered.
- Open: the session waits on both its outbound queue and the socket. Queued
  slide numbers are relayed to the viewer as text frames. A disconnect ends
  the session; every other inbound frame is ignored, since viewers never
  request navigation over this channel. Keepalive pings are answered by the
  ASGI server's WebSocket protocol before they reach the application.
- Closed: the connection is deregistered exactly once.

Transport errors are treated the same as a disconnect and never leave the
session.
"""

import asyncio
import enum
import logging

from starlette.websockets import WebSocket, WebSocketDisconnect

from skate.sync.registry import ConnectionId, ConnectionRegistry, Outbox

_log = logging.getLogger(__name__)

TRANSPORT_ERRORS = (WebSocketDisconnect, OSError)


class ConnectionState(enum.Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class ViewerSession:
    def __init__(self, websocket: WebSocket, registry: ConnectionRegistry) -> None:
        self.websocket = websocket
        self.registry = registry
        self.state = ConnectionState.CONNECTING
        self.connection_id: ConnectionId | None = None

    async def run(self) -> None:
        """Serve the connection until the viewer leaves or the transport fails."""
        try:
            await self.websocket.accept()
            self.connection_id, outbox = await self.registry.register()
            self.state = ConnectionState.OPEN
            _log.info(f"Viewer {self.connection_id} connected")
            await self._relay(outbox)
        except TRANSPORT_ERRORS as e:
            _log.debug(f"Viewer {self.connection_id} transport error: {e!r}")
        except RuntimeError as e:
            # Starlette reports use of a closed socket this way, but so does a bug.
            _log.warning(f"Viewer {self.connection_id} closed on runtime error: {e}", exc_info=True)
        finally:
            await self.close()

    async def close(self) -> None:
        """Move to Closed and deregister. Safe to call more than once."""
        if self.state is ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSED
        if self.connection_id is not None:
            await self.registry.deregister(self.connection_id)
            _log.info(f"Viewer {self.connection_id} disconnected")

    async def _relay(self, outbox: Outbox) -> None:
        inbound = asyncio.create_task(self.websocket.receive())
        outbound = asyncio.create_task(outbox.get())
        try:
            while True:
                done, _ = await asyncio.wait(
                    {inbound, outbound}, return_when=asyncio.FIRST_COMPLETED
                )
                # Both arms are serviced when both are ready.
                if inbound in done:
                    message = inbound.result()
                    if message["type"] == "websocket.disconnect":
                        _log.debug(
                            f"Viewer {self.connection_id} closed with code {message.get('code')}"
                        )
                        return
                    inbound = asyncio.create_task(self.websocket.receive())
                if outbound in done:
                    await self.websocket.send_text(outbound.result())
                    outbound = asyncio.create_task(outbox.get())
        finally:
            for task in (inbound, outbound):
                task.cancel()
            await asyncio.wait({inbound, outbound})
            # Consume failures of arms that finished before the cancel.
            for task in (inbound, outbound):
                if not task.cancelled():
                    task.exception()
