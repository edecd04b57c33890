"""Device-side WebSocket client for the relay server.

The client keeps one connection to the relay, reconnecting after a fixed
interval while the attempt budget lasts. Messages sent while disconnected
wait in an unbounded in-memory queue and are flushed oldest-first once the
connection opens. Incoming messages are dispatched to handlers registered
per message kind.
"""

import asyncio
import contextlib
import inspect
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from debugbridge.core.clock import now_ms
from debugbridge.core.config import ClientConfig
from debugbridge.core.encoding.messages import decode_message, encode_message
from debugbridge.core.exceptions import PayloadDecodeError
from debugbridge.core.models import MessageKind, StructuredMessage

logger = logging.getLogger(__name__)

MessageHandler = Callable[[StructuredMessage], Awaitable[None] | None]


class ClientState(str, Enum):
    """Connection state of a RelayClient."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class RelayClient:
    """Reconnecting WebSocket client with an outgoing queue.

    ``connect()``, ``send()`` and ``disconnect()`` never block and never
    raise for transport failures; outcomes are reported through the
    ``on_connect``, ``on_disconnect`` and ``on_error`` callbacks.

    Example:
        ```python
        client = RelayClient(ClientConfig(url="ws://192.168.1.20:8347"))
        client.on(MessageKind.PONG, lambda message: print("pong", message.timestamp))
        client.connect()
        client.send(StructuredMessage(MessageKind.CUSTOM, now_ms(), {"name": "boot"}))
        ```
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        on_connect: Callable[[], None] | None = None,
        on_disconnect: Callable[[], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._on_connect = on_connect
        self._on_disconnect = on_disconnect
        self._on_error = on_error
        self._state = ClientState.DISCONNECTED
        self._reconnect_enabled = self._config.auto_reconnect
        self._attempts = 0
        self._queue: deque[str] = deque()
        self._handlers: dict[MessageKind, list[MessageHandler]] = {}
        self._task: asyncio.Task[None] | None = None
        self._closing: set[asyncio.Task[None]] = set()
        self._wakeup = asyncio.Event()
        self._connected = asyncio.Event()

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ClientState.CONNECTED

    @property
    def pending_count(self) -> int:
        """Messages queued and not yet transmitted."""
        return len(self._queue)

    @property
    def reconnect_attempts(self) -> int:
        return self._attempts

    def connect(self) -> None:
        """Start connecting in the background.

        Does nothing while a connection (or reconnect cycle) is active.
        After ``disconnect()`` the new connection opens once the previous
        socket has closed. Must be called from a running event loop.
        """
        if self._task is not None and not self._task.done():
            return
        self._reconnect_enabled = self._config.auto_reconnect
        self._attempts = 0
        self._task = asyncio.get_running_loop().create_task(
            self._run(list(self._closing))
        )

    def disconnect(self) -> None:
        """Close the connection and stop reconnecting.

        The socket is closed asynchronously; await ``wait_closed()`` to be
        sure it is released.
        """
        self._reconnect_enabled = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
            self._closing.add(self._task)
            self._task.add_done_callback(self._closing.discard)
        self._task = None
        self._state = ClientState.DISCONNECTED
        self._connected.clear()

    async def wait_closed(self) -> None:
        """Wait until every background connection task has finished."""
        tasks = [*self._closing, *([self._task] if self._task is not None else [])]
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def wait_connected(self, timeout: float | None = None) -> bool:
        """Wait until the client is connected.

        Returns:
            True if connected within ``timeout`` seconds.
        """
        try:
            await asyncio.wait_for(self._connected.wait(), timeout)
        except TimeoutError:
            return False
        return True

    def send(self, message: StructuredMessage) -> None:
        """Transmit ``message`` now if connected, otherwise queue it."""
        self._queue.append(encode_message(message))
        self._wakeup.set()

    def on(self, kind: MessageKind, handler: MessageHandler) -> Callable[[], None]:
        """Register a handler for one message kind.

        Handlers for a kind run in registration order.

        Returns:
            A callable removing the handler again.
        """
        handlers = self._handlers.setdefault(kind, [])
        handlers.append(handler)

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    async def _run(self, previous: list[asyncio.Task[None]]) -> None:
        """Connect, serve, and reconnect until stopped or out of attempts."""
        if previous:
            await asyncio.wait(previous)
        while True:
            self._state = ClientState.CONNECTING
            try:
                async with connect(
                    self._config.url, ping_interval=None, ping_timeout=None
                ) as connection:
                    await self._serve(connection)
            except (OSError, WebSocketException) as e:
                logger.warning("Relay connection to %s failed: %s", self._config.url, e)
                self._invoke(self._on_error, e)
            self._state = ClientState.DISCONNECTED

            if not self._reconnect_enabled:
                return
            if self._attempts >= self._config.max_reconnect_attempts:
                logger.warning(
                    "Giving up on %s after %d reconnect attempts",
                    self._config.url,
                    self._attempts,
                )
                return
            self._attempts += 1
            logger.info(
                "Reconnecting to %s in %.1fs (attempt %d/%d)",
                self._config.url,
                self._config.reconnect_interval,
                self._attempts,
                self._config.max_reconnect_attempts,
            )
            await asyncio.sleep(self._config.reconnect_interval)

    async def _serve(self, connection: ClientConnection) -> None:
        """Run one open connection until it closes."""
        self._state = ClientState.CONNECTED
        self._attempts = 0
        self._connected.set()
        logger.info("Connected to relay %s", self._config.url)
        self._invoke(self._on_connect)

        writer = asyncio.create_task(self._write(connection))
        heartbeat = asyncio.create_task(self._heartbeat(connection))
        try:
            async for raw in connection:
                await self._dispatch(raw)
        except ConnectionClosed as e:
            logger.warning("Relay connection closed: %s", e)
        except asyncio.CancelledError:
            # Close with 1000 before the context manager sees the cancellation.
            await connection.close()
            raise
        finally:
            for task in (writer, heartbeat):
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError, ConnectionClosed):
                    await task
            self._state = ClientState.DISCONNECTED
            self._connected.clear()
            logger.info("Disconnected from relay %s", self._config.url)
            self._invoke(self._on_disconnect)

    async def _write(self, connection: ClientConnection) -> None:
        """Drain the outgoing queue, oldest first, while connected."""
        while True:
            while self._queue:
                # Popped only after a successful send so a drop keeps it queued.
                await connection.send(self._queue[0])
                self._queue.popleft()
            self._wakeup.clear()
            await self._wakeup.wait()

    async def _heartbeat(self, connection: ClientConnection) -> None:
        while True:
            await asyncio.sleep(self._config.ping_interval)
            ping = StructuredMessage(kind=MessageKind.PING, timestamp=now_ms())
            await connection.send(encode_message(ping))

    async def _dispatch(self, raw: str | bytes) -> None:
        try:
            text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
            message = decode_message(text)
        except (UnicodeDecodeError, PayloadDecodeError) as e:
            logger.warning("Dropping malformed message from relay: %s", e)
            return

        for handler in list(self._handlers.get(message.kind, ())):
            try:
                result = handler(message)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Handler %r failed for %s", handler, message.kind.value)

    @staticmethod
    def _invoke(callback: Callable[..., None] | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Client callback %r failed", callback)
