"""Wire encodings for structured messages."""

from debugbridge.core.encoding.frames import (
    FRAME_PREFIX,
    FrameEncoder,
    decode_payload,
    parse_frame,
)
from debugbridge.core.encoding.messages import decode_message, encode_message
from debugbridge.core.encoding.ndjson import encode_ndjson

__all__ = [
    "FRAME_PREFIX",
    "FrameEncoder",
    "decode_message",
    "decode_payload",
    "encode_message",
    "encode_ndjson",
    "parse_frame",
]
