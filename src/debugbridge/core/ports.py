"""Port interfaces between the protocol core and its I/O collaborators.

The core depends only on these protocols, not on concrete adapters.
"""

from collections.abc import Iterator
from typing import Protocol, runtime_checkable

from debugbridge.core.models import StructuredMessage


@runtime_checkable
class LineSinkPort(Protocol):
    """Destination for rendered log-line frames.

    Examples: StreamLineSink, LoggerLineSink.
    """

    def write_line(self, line: str) -> None:
        """Write one frame line verbatim."""
        ...


@runtime_checkable
class LineSourcePort(Protocol):
    """Ordered stream of raw text lines, e.g. a device system log.

    The source pushes lines into a LogLineDecoder; there is no channel
    back to it.
    """

    def __iter__(self) -> Iterator[str]: ...


@runtime_checkable
class MessageTransportPort(Protocol):
    """Fire-and-forget producer transport.

    Examples: LogLineTransport, RelayClient.
    """

    def send(self, message: StructuredMessage) -> None:
        """Emit one message; never blocks on the consumer."""
        ...
