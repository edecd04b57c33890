"""Producer-side SDK emitting debugging events through a transport.

A DebuggerSDK instance owns everything it installs (logging handlers,
performance marks) and releases it in ``destroy()``, so several instances
can coexist in one process.
"""

import logging
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import Any

from debugbridge.adapters.logging import install_handler
from debugbridge.adapters.network import NetworkRecorder
from debugbridge.adapters.relay.client import RelayClient
from debugbridge.core.clock import Clock, now_ms
from debugbridge.core.models import MessageKind, StructuredMessage
from debugbridge.core.payloads import CustomPayload, PerformancePayload, StatePayload
from debugbridge.core.ports import MessageTransportPort

logger = logging.getLogger(__name__)


class DebuggerSDK:
    """Emits custom events, state snapshots and performance marks.

    Example:
        ```python
        sdk = DebuggerSDK(LogLineTransport())
        restore = sdk.install_logging()
        sdk.track_event("checkout", {"items": 3})
        with sdk.measure("load-profile"):
            load_profile()
        sdk.destroy()
        ```
    """

    def __init__(self, transport: MessageTransportPort, clock: Clock = now_ms) -> None:
        self._transport: MessageTransportPort | None = transport
        self._clock = clock
        self._marks: dict[str, int] = {}
        self._restore_handles: list[Callable[[], None]] = []

    @property
    def is_active(self) -> bool:
        return self._transport is not None

    @property
    def is_connected(self) -> bool:
        """Connection status for relay transports; log-line transports are always up."""
        if isinstance(self._transport, RelayClient):
            return self._transport.is_connected
        return self._transport is not None

    def start(self) -> None:
        """Open the relay connection when the transport is a RelayClient."""
        if isinstance(self._transport, RelayClient):
            self._transport.connect()

    def send(self, message: StructuredMessage) -> None:
        """Send a message; dropped silently after ``destroy()``."""
        if self._transport is not None:
            self._transport.send(message)

    def _emit(self, kind: MessageKind, payload: dict[str, Any]) -> None:
        self.send(StructuredMessage(kind=kind, timestamp=self._clock(), payload=payload))

    def track_event(self, name: str, data: Any = None) -> None:
        """Send a named custom event."""
        event = CustomPayload(
            name=name, data=data if data is not None else {}, timestamp=self._clock()
        )
        self._emit(MessageKind.CUSTOM, event.to_dict())

    def send_state(self, name: str, state: Any) -> None:
        """Send a snapshot of named application state."""
        snapshot = StatePayload(name=name, state=state, timestamp=self._clock())
        self._emit(MessageKind.STATE, snapshot.to_dict())

    def mark_start(self, name: str) -> None:
        """Start (or restart) a performance measurement."""
        self._marks[name] = self._clock()

    def mark_end(self, name: str) -> int | None:
        """Finish a measurement and send it.

        Returns:
            The measured duration in milliseconds, or None when no
            measurement named ``name`` was started.
        """
        start = self._marks.pop(name, None)
        if start is None:
            logger.warning('No start mark found for "%s"', name)
            return None
        duration = self._clock() - start
        mark = PerformancePayload(name=name, start_time=start, duration=duration)
        self._emit(MessageKind.PERFORMANCE, mark.to_dict())
        return duration

    @contextmanager
    def measure(self, name: str) -> Generator[None, None, None]:
        """Context manager sending a performance mark for its body."""
        self.mark_start(name)
        try:
            yield
        finally:
            self.mark_end(name)

    def install_logging(
        self, target: logging.Logger | None = None, level: int = logging.DEBUG
    ) -> Callable[[], None]:
        """Forward records of ``target`` (root by default) as console messages.

        Returns:
            A callable removing the handler; ``destroy()`` also removes it.
        """
        restore = install_handler(self, target, level)
        self._restore_handles.append(restore)

        def uninstall() -> None:
            if restore in self._restore_handles:
                self._restore_handles.remove(restore)
                restore()

        return uninstall

    def network_recorder(self) -> NetworkRecorder:
        """Create httpx hooks reporting traffic through this SDK."""
        return NetworkRecorder(self.send)

    def destroy(self) -> None:
        """Uninstall every handler, clear marks and close a relay transport."""
        if self._transport is None:
            return
        while self._restore_handles:
            self._restore_handles.pop()()
        if isinstance(self._transport, RelayClient):
            self._transport.disconnect()
        self._marks.clear()
        self._transport = None
