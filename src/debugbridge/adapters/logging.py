"""Python logging handler adapter for debugbridge.

This adapter bridges Python's standard library logging module to a
MessageTransportPort, turning each log record into a ``console`` message
that the desktop consumer displays next to network and state events.
"""

import logging
import traceback
from collections.abc import Callable
from typing import Any

from debugbridge.core.models import MessageKind, StructuredMessage
from debugbridge.core.payloads import ConsolePayload
from debugbridge.core.ports import MessageTransportPort

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

# Records from these loggers describe the transport itself and are not sent.
_INTERNAL_LOGGER_PREFIX = "debugbridge."


def console_level(levelno: int) -> str:
    """Map a logging level number to a console level name."""
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warn"
    if levelno >= logging.INFO:
        return "info"
    return "debug"


class DebugBridgeHandler(logging.Handler):
    """Logging handler that sends log records as console messages.

    The rendered message is the first console argument. Extra attributes
    passed via ``extra=`` become a second, object-valued argument, and
    exception info is appended as an ``{name, message, stack}`` object.

    Example:
        ```python
        from debugbridge import DebugBridgeHandler, LogLineTransport

        handler = DebugBridgeHandler(LogLineTransport())
        logging.getLogger().addHandler(handler)
        ```
    """

    def __init__(self, transport: MessageTransportPort, level: int = logging.NOTSET) -> None:
        """Initialize the handler with a transport.

        Args:
            transport: Transport receiving one console message per record.
            level: Minimum record level to send.
        """
        super().__init__(level)
        self._transport = transport

    def emit(self, record: logging.LogRecord) -> None:
        """Send a log record as a console message.

        Args:
            record: The log record to emit.
        """
        if record.name.startswith(_INTERNAL_LOGGER_PREFIX):
            return
        try:
            timestamp = int(record.created * 1000)
            args: list[Any] = [record.getMessage()]

            extra = {
                key: value
                for key, value in record.__dict__.items()
                if key not in _STANDARD_LOGRECORD_ATTRS
                and isinstance(value, (str, int, float, bool))
            }
            if extra:
                args.append(extra)

            if record.exc_info:
                exc_type, exc_value, exc_tb = record.exc_info
                if exc_type is not None:
                    args.append(
                        {
                            "name": exc_type.__name__,
                            "message": str(exc_value),
                            "stack": "".join(
                                traceback.format_exception(exc_type, exc_value, exc_tb)
                            ),
                        }
                    )

            payload = ConsolePayload(
                level=console_level(record.levelno), args=args, timestamp=timestamp
            )
            self._transport.send(
                StructuredMessage(
                    kind=MessageKind.CONSOLE, timestamp=timestamp, payload=payload.to_dict()
                )
            )
        except Exception:
            self.handleError(record)


def install_handler(
    transport: MessageTransportPort,
    target: logging.Logger | None = None,
    level: int = logging.DEBUG,
) -> Callable[[], None]:
    """Attach a DebugBridgeHandler to a logger.

    Args:
        transport: Transport receiving the console messages.
        target: Logger to instrument (root logger by default).
        level: Minimum record level to send.

    Returns:
        A callable detaching the handler again.
    """
    target = target or logging.getLogger()
    handler = DebugBridgeHandler(transport, level=level)
    target.addHandler(handler)

    def restore() -> None:
        target.removeHandler(handler)

    return restore
