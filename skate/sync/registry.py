"""
Registry of open viewer connections.

Each viewer connection owns a single-slot outbound queue. The registry maps a
connection ID to that queue so the broadcaster can reach every viewer, and
hands the same queue back to the connection's own handler which drains it.

Connection IDs come from one shared 16-bit counter. The counter only moves
forward and wraps to zero after 65535; once it has wrapped, a new connection
can receive the ID of one that is still open and will replace its entry.
"""

import asyncio
import logging

_log = logging.getLogger(__name__)

CONNECTION_ID_LIMIT = 1 << 16
OUTBOX_CAPACITY = 1

ConnectionId = int
Outbox = asyncio.Queue[str]


class ConnectionRegistry:
    """Shared map of connection ID to outbound queue."""

    def __init__(self) -> None:
        self._next_id: ConnectionId = 0
        self._outboxes: dict[ConnectionId, Outbox] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._outboxes)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._outboxes

    async def register(self) -> tuple[ConnectionId, Outbox]:
        """
        Allocate the next connection ID and a fresh outbound queue.

        Returns:
            tuple[ConnectionId, Outbox]: The new ID and the queue the caller
                                         must drain for this connection.
        """
        async with self._lock:
            connection_id = self._next_id
            self._next_id = (self._next_id + 1) % CONNECTION_ID_LIMIT
            outbox: Outbox = asyncio.Queue(maxsize=OUTBOX_CAPACITY)
            if connection_id in self._outboxes:
                _log.warning(f"Connection ID {connection_id} reused while still open")
            self._outboxes[connection_id] = outbox
        _log.debug(f"Registered connection {connection_id} ({len(self)} open)")
        return connection_id, outbox

    async def deregister(self, connection_id: ConnectionId) -> None:
        """Remove a connection. Removing an unknown ID is a no-op."""
        async with self._lock:
            removed = self._outboxes.pop(connection_id, None)
        if removed is not None:
            _log.debug(f"Deregistered connection {connection_id} ({len(self)} open)")

    async def broadcast_snapshot(self) -> list[tuple[ConnectionId, Outbox]]:
        """
        Copy the current entries, ordered by connection ID.

        The copy is taken under the lock and returned, so delivery never holds
        the lock and a slow consumer cannot block registration.
        """
        async with self._lock:
            return sorted(self._outboxes.items())
