"""NDJSON encoder for structured messages."""

from collections.abc import Iterable

from debugbridge.core.encoding.messages import encode_message
from debugbridge.core.models import StructuredMessage


def encode_ndjson(messages: Iterable[StructuredMessage]) -> str:
    """Encode messages to newline-delimited JSON.

    Args:
        messages: An iterable of StructuredMessage objects.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no messages.
    """
    lines = [encode_message(message) for message in messages]

    if not lines:
        return ""

    return "\n".join(lines) + "\n"
