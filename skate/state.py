"""Per-application server state shared by every request and viewer connection."""

import dataclasses

from starlette.requests import HTTPConnection

from skate.config import PresentationSettings
from skate.sync import Broadcaster, ConnectionRegistry, ControlGate


@dataclasses.dataclass
class ServerState:
    settings: PresentationSettings
    registry: ConnectionRegistry
    broadcaster: Broadcaster
    gate: ControlGate

    @classmethod
    def from_settings(cls, settings: PresentationSettings) -> "ServerState":
        registry = ConnectionRegistry()
        return cls(
            settings=settings,
            registry=registry,
            broadcaster=Broadcaster(registry),
            gate=ControlGate(settings.password),
        )


def get_state(connection: HTTPConnection) -> ServerState:
    """FastAPI dependency returning the state of the app serving ``connection``."""
    return connection.app.state.skate
