"""Producer transports."""

from debugbridge.adapters.transports.logline import (
    LoggerLineSink,
    LogLineTransport,
    StreamLineSink,
)

__all__ = [
    "LogLineTransport",
    "LoggerLineSink",
    "StreamLineSink",
]
