"""Core domain models for debugging messages and their transport framing."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MessageKind(str, Enum):
    """Closed set of message kinds carried by both transports.

    Values are the lowercase names used on the wire.
    """

    CONSOLE = "console"
    NETWORK = "network"
    STATE = "state"
    PERFORMANCE = "performance"
    CUSTOM = "custom"
    ZUSTAND = "zustand"
    WEBSOCKET = "websocket"
    PING = "ping"
    PONG = "pong"
    CONNECTED = "connected"


@dataclass(frozen=True)
class StructuredMessage:
    """One logical debugging event.

    The same shape travels over the log-line transport and the socket
    transport; only the framing differs.

    Attributes:
        kind: Message kind.
        timestamp: Producer-assigned epoch milliseconds.
        payload: Kind-specific JSON-compatible data, opaque to the transport.
            None for payload-less messages such as ping and pong.
    """

    kind: MessageKind
    timestamp: int
    payload: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Return the wire dictionary (payload omitted when None)."""
        data: dict[str, Any] = {"kind": self.kind.value, "timestamp": self.timestamp}
        if self.payload is not None:
            data["payload"] = self.payload
        return data


@dataclass(frozen=True)
class Frame:
    """One line of the log-line transport, carrying one chunk of a message.

    Attributes:
        sequence_number: Per-producer sequence number shared by all chunks
            of one logical message.
        kind: Lowercase kind tag taken from the frame header.
        compressed: True when the segment belongs to a base64 encoding.
        chunk_index: 1-based position of this chunk.
        chunk_total: Number of chunks composing the logical message.
        segment: The literal text carried by this frame.
    """

    sequence_number: int
    kind: str
    compressed: bool
    chunk_index: int
    chunk_total: int
    segment: str

    @property
    def reassembly_key(self) -> str:
        """Key grouping the chunks of one logical message."""
        return f"{self.sequence_number:06d}-{self.chunk_total}"

    def render(self) -> str:
        """Render the frame as a single wire line."""
        flag = "Z" if self.compressed else "-"
        return (
            f"SDKMSG:{self.sequence_number:06d}:{self.kind.upper()}:{flag}:"
            f"{self.chunk_index}/{self.chunk_total} {self.segment}"
        )


@dataclass
class PendingMessage:
    """A multi-chunk message whose chunks have not all arrived yet."""

    kind: str
    compressed: bool
    chunk_total: int
    created_at: int
    chunks: dict[int, str] = field(default_factory=dict)

    @property
    def is_complete(self) -> bool:
        return len(self.chunks) == self.chunk_total

    def join(self) -> str:
        """Concatenate the received chunks in index order."""
        return "".join(
            self.chunks[index]
            for index in range(1, self.chunk_total + 1)
            if index in self.chunks
        )


@dataclass
class RelayConnection:
    """A consumer socket accepted by the relay server.

    Attributes:
        id: Opaque identifier assigned at accept time.
        connected_at: Epoch milliseconds of the accept.
        socket: The underlying websocket connection.
    """

    id: str
    connected_at: int
    socket: Any = field(repr=False)
