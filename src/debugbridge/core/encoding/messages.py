"""JSON encoding of structured messages.

Both transports carry the compact JSON text produced here: the socket
transport sends it as one frame, the log-line transport chunks it.
"""

import json
from typing import Any

from debugbridge.core.exceptions import PayloadDecodeError
from debugbridge.core.models import MessageKind, StructuredMessage

_ENVELOPE_KEYS = frozenset({"kind", "type", "timestamp"})


def encode_message(message: StructuredMessage) -> str:
    """Serialize a message to compact, ASCII-only JSON text.

    Args:
        message: The message to serialize.

    Returns:
        JSON text such as ``{"kind":"custom","timestamp":1000,"payload":{...}}``.
    """
    return json.dumps(message.to_dict(), separators=(",", ":"), ensure_ascii=True)


def encode_handshake(connection_id: str, timestamp: int) -> str:
    """Serialize the relay's welcome message for a new connection."""
    return json.dumps(
        {"kind": MessageKind.CONNECTED.value, "id": connection_id, "timestamp": timestamp},
        separators=(",", ":"),
    )


def message_from_dict(data: Any) -> StructuredMessage:
    """Build a message from a decoded wire dictionary.

    A missing ``kind`` falls back to the legacy ``type`` key. A missing
    ``payload`` collects the remaining top-level keys (the relay
    handshake carries its ``id`` that way), or None if there are none.

    Raises:
        PayloadDecodeError: If the dictionary is not a valid message.
    """
    if not isinstance(data, dict):
        raise PayloadDecodeError(f"expected a JSON object, got {type(data).__name__}")

    raw_kind = data.get("kind", data.get("type"))
    try:
        kind = MessageKind(raw_kind)
    except ValueError as e:
        raise PayloadDecodeError(f"unknown message kind: {raw_kind!r}") from e

    timestamp = data.get("timestamp")
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        raise PayloadDecodeError(f"timestamp must be an integer, got {timestamp!r}")

    if "payload" in data:
        payload = data["payload"]
    else:
        extra = {k: v for k, v in data.items() if k not in _ENVELOPE_KEYS}
        payload = extra or None

    return StructuredMessage(kind=kind, timestamp=timestamp, payload=payload)


def decode_message(text: str) -> StructuredMessage:
    """Parse JSON message text.

    Raises:
        PayloadDecodeError: If the text is not JSON or not a valid message.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise PayloadDecodeError(f"invalid JSON: {e}") from e
    return message_from_dict(data)
