"""Configuration objects for the codec, reassembly, relay and client.

Defaults match the values existing producers and consumers agree on.
Relay and client settings can be overridden from the environment.
"""

import os
from dataclasses import dataclass

DEFAULT_WS_PORT = 8347
MAX_CHUNK_SIZE = 3500
COMPRESSION_THRESHOLD = 1500
REASSEMBLY_TIMEOUT_MS = 30_000
PING_INTERVAL_SECONDS = 30.0


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    return float(raw) if raw else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw else default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if not raw:
        return default
    return raw.lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class CodecConfig:
    """Frame codec limits.

    Attributes:
        max_chunk_size: Maximum payload characters per frame.
        compression_threshold: Serialized length above which the payload
            is base64-encoded and flagged ``Z``.
    """

    max_chunk_size: int = MAX_CHUNK_SIZE
    compression_threshold: int = COMPRESSION_THRESHOLD

    def __post_init__(self) -> None:
        if self.max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be positive")
        if self.compression_threshold < 0:
            raise ValueError("compression_threshold must be non-negative")


@dataclass(frozen=True)
class ReassemblyConfig:
    """Staleness window for partially received messages."""

    timeout_ms: int = REASSEMBLY_TIMEOUT_MS

    def __post_init__(self) -> None:
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")


@dataclass(frozen=True)
class RelayConfig:
    """Relay server listening address and heartbeat period."""

    host: str = "0.0.0.0"
    port: int = DEFAULT_WS_PORT
    ping_interval: float = PING_INTERVAL_SECONDS

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 65535:
            raise ValueError(f"invalid port: {self.port}")
        if self.ping_interval <= 0:
            raise ValueError("ping_interval must be positive")

    @classmethod
    def from_env(cls) -> "RelayConfig":
        """Build a config from ``DEBUGBRIDGE_WS_*`` environment variables."""
        return cls(
            host=os.getenv("DEBUGBRIDGE_WS_HOST", cls.host),
            port=_env_int("DEBUGBRIDGE_WS_PORT", cls.port),
            ping_interval=_env_float("DEBUGBRIDGE_PING_INTERVAL", cls.ping_interval),
        )


@dataclass(frozen=True)
class ClientConfig:
    """Device-side relay client settings.

    Attributes:
        url: WebSocket URL of the relay.
        auto_reconnect: Reconnect after the connection drops.
        reconnect_interval: Seconds to wait before each reconnect attempt.
        max_reconnect_attempts: Attempts allowed before giving up.
        ping_interval: Seconds between application-level pings.
    """

    url: str = f"ws://127.0.0.1:{DEFAULT_WS_PORT}"
    auto_reconnect: bool = True
    reconnect_interval: float = 3.0
    max_reconnect_attempts: int = 10
    ping_interval: float = PING_INTERVAL_SECONDS

    def __post_init__(self) -> None:
        if not self.url.startswith(("ws://", "wss://")):
            raise ValueError(f"url must be a ws:// or wss:// URL: {self.url}")
        if self.reconnect_interval < 0:
            raise ValueError("reconnect_interval must be non-negative")
        if self.max_reconnect_attempts < 0:
            raise ValueError("max_reconnect_attempts must be non-negative")
        if self.ping_interval <= 0:
            raise ValueError("ping_interval must be positive")

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build a config from ``DEBUGBRIDGE_*`` environment variables."""
        return cls(
            url=os.getenv("DEBUGBRIDGE_URL", cls.url),
            auto_reconnect=_env_bool("DEBUGBRIDGE_AUTO_RECONNECT", cls.auto_reconnect),
            reconnect_interval=_env_float(
                "DEBUGBRIDGE_RECONNECT_INTERVAL", cls.reconnect_interval
            ),
            max_reconnect_attempts=_env_int(
                "DEBUGBRIDGE_MAX_RECONNECT_ATTEMPTS", cls.max_reconnect_attempts
            ),
            ping_interval=_env_float("DEBUGBRIDGE_PING_INTERVAL", cls.ping_interval),
        )
