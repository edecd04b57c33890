"""Producer transport writing framed messages to a line-oriented log sink.

On a device the sink is the process's standard output or logger, which
the platform forwards to the system log stream that the desktop reads.
"""

import logging
import sys
from typing import TextIO

from debugbridge.core.config import CodecConfig
from debugbridge.core.encoding.frames import FrameEncoder
from debugbridge.core.models import StructuredMessage
from debugbridge.core.ports import LineSinkPort


class StreamLineSink:
    """Writes each frame as one line to a text stream (stdout by default)."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def write_line(self, line: str) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(line + "\n")
        stream.flush()


class LoggerLineSink:
    """Emits each frame as one record on a ``logging`` logger.

    Args:
        target: Logger receiving the frames. Its handlers must not wrap
            or truncate the message text.
        level: Record level (default INFO).
    """

    def __init__(self, target: logging.Logger, level: int = logging.INFO) -> None:
        self._target = target
        self._level = level

    def write_line(self, line: str) -> None:
        self._target.log(self._level, "%s", line)


class LogLineTransport:
    """Fire-and-forget transport framing messages into log lines.

    Example:
        ```python
        transport = LogLineTransport()
        transport.send(StructuredMessage(MessageKind.CUSTOM, 1000, {"name": "x"}))
        # stdout: SDKMSG:000001:CUSTOM:-:1/1 {"kind":"custom",...}
        ```
    """

    def __init__(
        self,
        sink: LineSinkPort | None = None,
        config: CodecConfig | None = None,
    ) -> None:
        self._sink = sink or StreamLineSink()
        self._encoder = FrameEncoder(config)

    @property
    def sequence(self) -> int:
        """Sequence number of the last message sent."""
        return self._encoder.sequence

    def send(self, message: StructuredMessage) -> None:
        """Write every frame of ``message`` to the sink, one call per frame."""
        for line in self._encoder.encode_lines(message):
            self._sink.write_line(line)
