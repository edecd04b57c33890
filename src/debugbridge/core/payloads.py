"""Typed payload schemas for the message kinds the SDK produces.

The transport treats payloads as opaque JSON. These schemas are the
boundary where a payload is interpreted: ``parse_payload`` maps a message
to the schema object for its kind. Dictionary keys use the camelCase names
the existing producers emit.
"""

from dataclasses import dataclass, field
from typing import Any

from debugbridge.core.exceptions import PayloadDecodeError
from debugbridge.core.models import MessageKind, StructuredMessage


@dataclass(frozen=True)
class ConsolePayload:
    """A captured console / log call."""

    level: str
    args: list[Any]
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level, "args": self.args, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConsolePayload":
        return cls(
            level=data["level"], args=list(data.get("args", [])), timestamp=data["timestamp"]
        )


@dataclass(frozen=True)
class NetworkPayload:
    """An HTTP request, possibly completed with its response."""

    id: str
    url: str
    method: str
    timestamp: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str | None = None
    status: int | None = None
    response_headers: dict[str, str] | None = None
    response_body: str | None = None
    duration: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "method": self.method,
            "headers": self.headers,
            "timestamp": self.timestamp,
        }
        optional = {
            "body": self.body,
            "status": self.status,
            "responseHeaders": self.response_headers,
            "responseBody": self.response_body,
            "duration": self.duration,
            "error": self.error,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NetworkPayload":
        return cls(
            id=data["id"],
            url=data["url"],
            method=data["method"],
            timestamp=data["timestamp"],
            headers=dict(data.get("headers", {})),
            body=data.get("body"),
            status=data.get("status"),
            response_headers=data.get("responseHeaders"),
            response_body=data.get("responseBody"),
            duration=data.get("duration"),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class StatePayload:
    """A named application state snapshot."""

    name: str
    state: Any
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "state": self.state, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StatePayload":
        return cls(name=data["name"], state=data.get("state"), timestamp=data["timestamp"])


@dataclass(frozen=True)
class PerformancePayload:
    """A completed performance measurement, times in epoch milliseconds."""

    name: str
    start_time: int
    duration: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "startTime": self.start_time}
        if self.duration is not None:
            data["duration"] = self.duration
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PerformancePayload":
        return cls(
            name=data["name"], start_time=data["startTime"], duration=data.get("duration")
        )


@dataclass(frozen=True)
class CustomPayload:
    """An application-defined named event."""

    name: str
    data: Any
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "data": self.data, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CustomPayload":
        return cls(name=data["name"], data=data.get("data"), timestamp=data["timestamp"])


Payload = ConsolePayload | NetworkPayload | StatePayload | PerformancePayload | CustomPayload

PAYLOAD_SCHEMAS: dict[MessageKind, type[Payload]] = {
    MessageKind.CONSOLE: ConsolePayload,
    MessageKind.NETWORK: NetworkPayload,
    MessageKind.STATE: StatePayload,
    MessageKind.PERFORMANCE: PerformancePayload,
    MessageKind.CUSTOM: CustomPayload,
}


def parse_payload(message: StructuredMessage) -> Payload | Any:
    """Interpret a message's payload according to its kind.

    Kinds without a schema (zustand, websocket, ping, pong, connected)
    return the raw payload unchanged.

    Raises:
        PayloadDecodeError: If the payload does not fit its kind's schema.
    """
    schema = PAYLOAD_SCHEMAS.get(message.kind)
    if schema is None:
        return message.payload
    if not isinstance(message.payload, dict):
        raise PayloadDecodeError(f"{message.kind.value} payload must be an object")
    try:
        return schema.from_dict(message.payload)
    except (KeyError, TypeError) as e:
        raise PayloadDecodeError(f"invalid {message.kind.value} payload: {e}") from e
