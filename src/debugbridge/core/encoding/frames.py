"""Log-line frame codec.

A structured message is serialized to JSON, optionally base64-encoded and
split into size-bounded chunks. Each chunk becomes one line::

    SDKMSG:000001:NETWORK:Z:1/3 <segment>

where ``000001`` is the producer's sequence number, ``NETWORK`` the message
kind, ``Z`` marks a base64 payload (``-`` for raw JSON) and ``1/3`` is the
chunk index and total. The ``Z`` flag is historical: the payload is only
base64-encoded, never compressed.
"""

import base64
import binascii
import re
from collections.abc import Iterator

from debugbridge.core.config import CodecConfig
from debugbridge.core.encoding.messages import decode_message, encode_message
from debugbridge.core.exceptions import FrameDecodeError, PayloadDecodeError
from debugbridge.core.models import Frame, StructuredMessage

FRAME_PREFIX = "SDKMSG:"

FRAME_PATTERN = re.compile(r"SDKMSG:(\d{6}):(\w+):([Z-]):(\d+)/(\d+)\s(.+)$")

SEQUENCE_MODULUS = 1_000_000


def split_segments(text: str, max_chunk_size: int) -> list[str]:
    """Split text into contiguous slices of at most ``max_chunk_size``."""
    if len(text) <= max_chunk_size:
        return [text]
    return [
        text[start : start + max_chunk_size]
        for start in range(0, len(text), max_chunk_size)
    ]


class FrameEncoder:
    """Turns messages into frames, owning one producer's sequence counter.

    The counter advances once per logical message, so every chunk of a
    message shares its sequence number. Sequence numbers are rendered with
    six digits and wrap to 0 after 999999, so a very long-lived producer
    can reuse a number still pending on the consumer side.

    Args:
        config: Chunk size and compression threshold (defaults 3500/1500).
        start: Last sequence number already used; the first message gets
            ``start + 1``.
    """

    def __init__(self, config: CodecConfig | None = None, start: int = 0) -> None:
        self._config = config or CodecConfig()
        self._sequence = start

    @property
    def sequence(self) -> int:
        """The sequence number of the most recently encoded message."""
        return self._sequence

    def encode(self, message: StructuredMessage) -> list[Frame]:
        """Encode one message into its frames, in chunk order."""
        text = encode_message(message)
        compressed = len(text) > self._config.compression_threshold
        if compressed:
            text = base64.b64encode(text.encode("utf-8")).decode("ascii")

        self._sequence = (self._sequence + 1) % SEQUENCE_MODULUS
        segments = split_segments(text, self._config.max_chunk_size)
        total = len(segments)
        return [
            Frame(
                sequence_number=self._sequence,
                kind=message.kind.value,
                compressed=compressed,
                chunk_index=index,
                chunk_total=total,
                segment=segment,
            )
            for index, segment in enumerate(segments, start=1)
        ]

    def encode_lines(self, message: StructuredMessage) -> Iterator[str]:
        """Encode one message and yield its rendered wire lines."""
        for frame in self.encode(message):
            yield frame.render()


def parse_frame(line: str) -> Frame | None:
    """Parse the frame header of a raw line.

    Lines without the ``SDKMSG:`` prefix are rejected without running the
    regular expression.

    Returns:
        The parsed Frame, or None if the line carries no frame prefix.

    Raises:
        FrameDecodeError: If the line has the prefix but not the grammar.
    """
    if FRAME_PREFIX not in line:
        return None

    match = FRAME_PATTERN.search(line)
    if match is None:
        raise FrameDecodeError(f"malformed frame: {line[:100]!r}")

    seq, kind, flag, index, total, segment = match.groups()
    return Frame(
        sequence_number=int(seq),
        kind=kind.lower(),
        compressed=flag == "Z",
        chunk_index=int(index),
        chunk_total=int(total),
        segment=segment,
    )


def _lenient_b64decode(text: str) -> str:
    """Second-chance base64 decode tolerating whitespace and lost padding."""
    cleaned = "".join(text.split())
    cleaned += "=" * (-len(cleaned) % 4)
    raw = base64.b64decode(cleaned, validate=False)
    return raw.decode("utf-8", errors="replace")


def b64decode_text(text: str) -> str:
    """Decode base64 text to UTF-8, falling back to a lenient decode.

    Raises:
        PayloadDecodeError: If neither decode succeeds.
    """
    try:
        return base64.b64decode(text, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        pass
    try:
        return _lenient_b64decode(text)
    except binascii.Error as e:
        raise PayloadDecodeError(f"invalid base64 payload: {e}") from e


def decode_payload(text: str, compressed: bool) -> StructuredMessage:
    """Decode a complete (possibly reassembled) payload into a message.

    Args:
        text: Raw JSON text, or its base64 encoding when ``compressed``.
        compressed: Whether ``text`` is base64-encoded.

    Raises:
        PayloadDecodeError: If the text cannot be decoded into a message.
    """
    if compressed:
        text = b64decode_text(text)
    return decode_message(text)
