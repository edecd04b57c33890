"""WebSocket relay server and device-side client."""

from debugbridge.adapters.relay.client import ClientState, RelayClient
from debugbridge.adapters.relay.server import RelayServer

__all__ = [
    "ClientState",
    "RelayClient",
    "RelayServer",
]
