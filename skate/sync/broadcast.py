"""Slide-change broadcasting to every registered viewer."""

import asyncio
import logging

from skate.sync.registry import ConnectionRegistry

_log = logging.getLogger(__name__)


class Broadcaster:
    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry

    async def dispatch(self, slide_index: int) -> int:
        """
        Queue a "go to slide" notification for every open connection.

        Delivery is best-effort: a viewer whose queue still holds an undrained
        message does not get this one, and nothing is retried. Connections are
        independent, so one full queue never affects the others.

        Args:
            slide_index: Slide to navigate to. Sent as its decimal string.

        Returns:
            int: Number of connections that accepted the notification.
        """
        message = str(slide_index)
        delivered = 0
        for connection_id, outbox in await self._registry.broadcast_snapshot():
            try:
                outbox.put_nowait(message)
            except asyncio.QueueFull:
                _log.debug(f"Dropped slide {message} for busy connection {connection_id}")
                continue
            delivered += 1

        _log.info(f"Dispatched slide {message} to {delivered} connection(s)")
        return delivered
