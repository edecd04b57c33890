"""WebSocket relay server fanning structured messages out to consumers.

Every consumer connection receives a ``connected`` handshake carrying its
id. Inbound ``ping`` messages are answered with ``pong`` directly; every
other well-formed inbound message is handed to the message observer.
``broadcast`` sends to every open connection; nothing is queued for
connections that are not open.
"""

import asyncio
import contextlib
import inspect
import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from websockets.asyncio.server import Server, serve
from websockets.exceptions import ConnectionClosed
from websockets.protocol import State

from debugbridge.core.clock import now_ms
from debugbridge.core.config import RelayConfig
from debugbridge.core.encoding.messages import (
    decode_message,
    encode_handshake,
    encode_message,
)
from debugbridge.core.exceptions import PayloadDecodeError, RelayAlreadyRunningError
from debugbridge.core.models import MessageKind, RelayConnection, StructuredMessage

logger = logging.getLogger(__name__)

MessageObserver = Callable[[str, StructuredMessage], Awaitable[None] | None]
ConnectionObserver = Callable[[str, bool], Awaitable[None] | None]


async def _notify(callback: Callable[..., Any] | None, *args: Any) -> None:
    """Invoke an observer, awaiting it if it is a coroutine function."""
    if callback is None:
        return
    try:
        result = callback(*args)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("Relay observer %r failed", callback)


class RelayServer:
    """Accepts consumer connections and relays messages to all of them.

    Example:
        ```python
        relay = RelayServer()
        relay.on_message(lambda client_id, message: print(client_id, message))
        await relay.start(port=8347)
        await relay.broadcast(StructuredMessage(MessageKind.CUSTOM, 1000, {}))
        await relay.stop()
        ```
    """

    def __init__(self, config: RelayConfig | None = None) -> None:
        """Initialize the relay.

        Args:
            config: Default host, port and heartbeat period.
        """
        self._config = config or RelayConfig()
        self._server: Server | None = None
        self._heartbeat_task: asyncio.Task[None] | None = None
        self._connections: dict[str, RelayConnection] = {}
        self._message_observer: MessageObserver | None = None
        self._connection_observer: ConnectionObserver | None = None

    @property
    def is_running(self) -> bool:
        return self._server is not None

    @property
    def connection_count(self) -> int:
        """Number of live consumer connections."""
        return len(self._connections)

    @property
    def port(self) -> int | None:
        """Port actually bound, useful after ``start(port=0)``."""
        if self._server is None:
            return None
        for sock in self._server.sockets:
            return int(sock.getsockname()[1])
        return None

    def connection_ids(self) -> list[str]:
        return list(self._connections)

    def on_message(self, callback: MessageObserver | None) -> None:
        """Set the observer receiving ``(connection_id, message)``."""
        self._message_observer = callback

    def on_connection(self, callback: ConnectionObserver | None) -> None:
        """Set the observer receiving ``(connection_id, connected)``."""
        self._connection_observer = callback

    async def start(self, port: int | None = None, host: str | None = None) -> None:
        """Bind the listening socket and start the heartbeat.

        Args:
            port: Port to listen on; 0 picks a free port. Defaults to config.
            host: Interface to bind. Defaults to config.

        Raises:
            RelayAlreadyRunningError: If the server is already started.
        """
        if self._server is not None:
            raise RelayAlreadyRunningError("relay server is already running")

        host = host if host is not None else self._config.host
        port = port if port is not None else self._config.port
        # The relay sends its own heartbeat and never reaps silent peers.
        self._server = await serve(
            self.handle_connection, host, port, ping_interval=None, ping_timeout=None
        )
        self._heartbeat_task = asyncio.create_task(self._heartbeat())
        logger.info("Relay server listening on %s:%s", host, self.port)

    async def stop(self) -> None:
        """Stop heartbeat, close every connection and stop listening.

        Safe to call when the server is not running.
        """
        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._heartbeat_task
            self._heartbeat_task = None

        if self._server is None:
            return

        connections = list(self._connections.values())
        self._connections.clear()
        await asyncio.gather(*(self._close(connection) for connection in connections))

        self._server.close()
        await self._server.wait_closed()
        self._server = None
        logger.info("Relay server stopped")

    async def _close(self, connection: RelayConnection) -> None:
        with contextlib.suppress(ConnectionClosed):
            await connection.socket.close()
        await _notify(self._connection_observer, connection.id, False)

    async def handle_connection(self, socket: Any) -> None:
        """Serve one consumer connection until it closes.

        Registered as the ``websockets`` connection handler; any object
        offering ``send``, ``close``, ``state`` and async iteration works.
        """
        connection = RelayConnection(
            id=str(uuid.uuid4()), connected_at=now_ms(), socket=socket
        )
        self._connections[connection.id] = connection
        logger.info("Client connected: %s", connection.id)
        await _notify(self._connection_observer, connection.id, True)

        try:
            await socket.send(encode_handshake(connection.id, now_ms()))
            async for raw in socket:
                await self._handle_inbound(connection, raw)
        except ConnectionClosed as e:
            logger.warning("Client %s connection error: %s", connection.id, e)
        finally:
            if self._connections.pop(connection.id, None) is not None:
                logger.info("Client disconnected: %s", connection.id)
                await _notify(self._connection_observer, connection.id, False)

    async def _handle_inbound(self, connection: RelayConnection, raw: str | bytes) -> None:
        try:
            text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
            message = decode_message(text)
        except (UnicodeDecodeError, PayloadDecodeError) as e:
            logger.warning("Dropping malformed message from %s: %s", connection.id, e)
            return

        if message.kind is MessageKind.PING:
            pong = StructuredMessage(kind=MessageKind.PONG, timestamp=now_ms())
            await connection.socket.send(encode_message(pong))
            return

        await _notify(self._message_observer, connection.id, message)

    async def broadcast(self, message: StructuredMessage) -> int:
        """Send ``message`` to every open connection.

        Connections that are not open are skipped silently.

        Returns:
            Number of connections the message was sent to.
        """
        data = encode_message(message)
        sent = 0
        for connection in list(self._connections.values()):
            if connection.socket.state is not State.OPEN:
                continue
            try:
                await connection.socket.send(data)
            except ConnectionClosed:
                logger.debug("Skipping closed connection %s", connection.id)
                continue
            sent += 1
        return sent

    async def send(self, connection_id: str, message: StructuredMessage) -> bool:
        """Send ``message`` to one connection if it exists and is open.

        Returns:
            True if the message was sent.
        """
        connection = self._connections.get(connection_id)
        if connection is None or connection.socket.state is not State.OPEN:
            return False
        try:
            await connection.socket.send(encode_message(message))
        except ConnectionClosed:
            return False
        return True

    async def _heartbeat(self) -> None:
        """Ping every open connection each ``ping_interval`` seconds."""
        while True:
            await asyncio.sleep(self._config.ping_interval)
            for connection in list(self._connections.values()):
                if connection.socket.state is not State.OPEN:
                    continue
                try:
                    await connection.socket.ping()
                except ConnectionClosed:
                    logger.debug("Ping to %s failed, connection closed", connection.id)
