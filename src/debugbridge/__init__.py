"""debugbridge: stream mobile debugging events to a desktop consumer.

Messages travel either as size-bounded ``SDKMSG:`` frames on the device's
system log stream or over a WebSocket relay that fans them out to every
connected consumer.
"""

from debugbridge.adapters.logging import DebugBridgeHandler
from debugbridge.adapters.network import NetworkRecorder
from debugbridge.adapters.relay import ClientState, RelayClient, RelayServer
from debugbridge.adapters.transports import (
    LoggerLineSink,
    LogLineTransport,
    StreamLineSink,
)
from debugbridge.core.config import (
    ClientConfig,
    CodecConfig,
    ReassemblyConfig,
    RelayConfig,
)
from debugbridge.core.decoder import LogLineDecoder, decode_lines
from debugbridge.core.encoding import FrameEncoder, decode_payload, parse_frame
from debugbridge.core.exceptions import (
    DebugBridgeError,
    FrameDecodeError,
    PayloadDecodeError,
    RelayAlreadyRunningError,
)
from debugbridge.core.models import Frame, MessageKind, StructuredMessage
from debugbridge.core.reassembly import ReassemblyBuffer
from debugbridge.sdk import DebuggerSDK

__all__ = [
    "ClientConfig",
    "ClientState",
    "CodecConfig",
    "DebugBridgeError",
    "DebugBridgeHandler",
    "DebuggerSDK",
    "Frame",
    "FrameDecodeError",
    "FrameEncoder",
    "LogLineDecoder",
    "LogLineTransport",
    "LoggerLineSink",
    "MessageKind",
    "NetworkRecorder",
    "PayloadDecodeError",
    "ReassemblyBuffer",
    "ReassemblyConfig",
    "RelayAlreadyRunningError",
    "RelayClient",
    "RelayConfig",
    "RelayServer",
    "StreamLineSink",
    "StructuredMessage",
    "decode_lines",
    "decode_payload",
    "parse_frame",
]
