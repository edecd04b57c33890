"""Test doubles and async helpers shared across test modules."""

import asyncio
import json
from collections.abc import Callable
from typing import Any

import pytest
from websockets.exceptions import ConnectionClosed
from websockets.protocol import State

from debugbridge.core.models import StructuredMessage


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class RecordingTransport:
    """Transport collecting every message it is asked to send."""

    def __init__(self) -> None:
        self.messages: list[StructuredMessage] = []

    def send(self, message: StructuredMessage) -> None:
        self.messages.append(message)


class RecordingSink:
    """Line sink collecting every written frame line."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def write_line(self, line: str) -> None:
        self.lines.append(line)


class FakeSocket:
    """In-process stand-in for a websockets server connection.

    Inbound frames are queued with ``feed()``; everything the relay sends
    is recorded in ``sent``.
    """

    def __init__(self) -> None:
        self.state = State.OPEN
        self.sent: list[str] = []
        self.pings = 0
        self._inbox: asyncio.Queue[str | bytes | None] = asyncio.Queue()

    @property
    def received(self) -> list[dict[str, Any]]:
        """Everything sent to this socket, decoded from JSON."""
        return [json.loads(data) for data in self.sent]

    def feed(self, data: str | bytes) -> None:
        self._inbox.put_nowait(data)

    def drop(self) -> None:
        """Mark closed without ending the relay's read loop yet."""
        self.state = State.CLOSED

    async def send(self, data: str) -> None:
        if self.state is not State.OPEN:
            raise ConnectionClosed(None, None)
        self.sent.append(data)

    async def ping(self) -> None:
        self.pings += 1

    async def close(self) -> None:
        self.state = State.CLOSED
        self._inbox.put_nowait(None)

    def __aiter__(self) -> "FakeSocket":
        return self

    async def __anext__(self) -> str | bytes:
        item = await self._inbox.get()
        if item is None:
            raise StopAsyncIteration
        return item


async def settle(rounds: int = 10) -> None:
    """Let pending tasks run a few event loop iterations."""
    for _ in range(rounds):
        await asyncio.sleep(0)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll ``predicate`` until true or fail after ``timeout`` seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            pytest.fail("condition not met before timeout")
        await asyncio.sleep(0.01)
