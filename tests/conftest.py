"""Shared test fixtures for all test modules."""

import socket
from collections.abc import AsyncGenerator

import pytest

from tests.helpers import FakeClock, RecordingSink, RecordingTransport


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock starting at a fixed epoch-millisecond value."""
    return FakeClock()


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def unused_port() -> int:
    """A TCP port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return int(sock.getsockname()[1])


@pytest.fixture
async def relay() -> AsyncGenerator:
    """Relay server listening on an ephemeral localhost port."""
    from debugbridge.adapters.relay.server import RelayServer
    from debugbridge.core.config import RelayConfig

    server = RelayServer(RelayConfig(host="127.0.0.1", port=0))
    await server.start()
    yield server
    await server.stop()


@pytest.fixture
def relay_url(relay) -> str:
    return f"ws://127.0.0.1:{relay.port}"
