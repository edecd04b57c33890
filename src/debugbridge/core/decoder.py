"""Line-oriented decoder turning raw log lines into structured messages."""

import logging
from collections.abc import Iterator

from debugbridge.core.encoding.frames import decode_payload, parse_frame
from debugbridge.core.exceptions import FrameDecodeError, PayloadDecodeError
from debugbridge.core.models import StructuredMessage
from debugbridge.core.ports import LineSourcePort
from debugbridge.core.reassembly import ReassemblyBuffer

logger = logging.getLogger(__name__)


class LogLineDecoder:
    """Decodes a single ordered stream of log lines.

    Single-chunk frames are decoded immediately; multi-chunk frames go
    through a ReassemblyBuffer. Malformed frames and undecodable payloads
    are logged and dropped, so ``feed()`` never raises for bad input.

    Example:
        ```python
        decoder = LogLineDecoder()
        for line in logcat_lines:
            message = decoder.feed(line)
            if message is not None:
                handle(message)
        ```
    """

    def __init__(self, buffer: ReassemblyBuffer | None = None) -> None:
        self.buffer = buffer or ReassemblyBuffer()
        self.decode_errors = 0

    def feed(self, line: str) -> StructuredMessage | None:
        """Consume one line.

        Returns:
            A completed message, or None if the line carried no frame, was
            malformed, left a message pending, or failed to decode.
        """
        try:
            frame = parse_frame(line.rstrip("\r\n"))
        except FrameDecodeError as e:
            logger.debug("Dropping line: %s", e)
            return None
        if frame is None:
            return None

        if frame.chunk_total == 1:
            text, compressed = frame.segment, frame.compressed
        else:
            pending = self.buffer.add_chunk(
                frame.reassembly_key,
                frame.kind,
                frame.compressed,
                frame.chunk_total,
                frame.chunk_index,
                frame.segment,
            )
            if pending is None:
                return None
            text, compressed = pending.join(), pending.compressed

        try:
            return decode_payload(text, compressed)
        except PayloadDecodeError as e:
            self.decode_errors += 1
            logger.error(
                "Failed to decode %s message %s: %s",
                frame.kind,
                frame.reassembly_key,
                e,
            )
            return None

    def reset(self) -> None:
        """Forget every partially received message."""
        self.buffer.reset()


def decode_lines(
    lines: LineSourcePort, decoder: LogLineDecoder | None = None
) -> Iterator[StructuredMessage]:
    """Yield every message completed by feeding ``lines`` in order."""
    decoder = decoder or LogLineDecoder()
    for line in lines:
        message = decoder.feed(line)
        if message is not None:
            yield message
