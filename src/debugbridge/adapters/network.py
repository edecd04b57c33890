"""httpx event hooks reporting HTTP traffic as ``network`` messages.

Each request produces one message when it is sent and a second one, with
status, response headers, body and duration, when the response arrives.
Responses with status >= 400 carry an ``error`` text. Failures below HTTP
(connection refused, timeouts) raise in the caller and are not reported.
"""

import itertools
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from debugbridge.core.clock import now_ms
from debugbridge.core.models import MessageKind, StructuredMessage
from debugbridge.core.payloads import NetworkPayload

MAX_BODY_LENGTH = 10_000
TRUNCATION_SUFFIX = "... [truncated]"


def _truncate(text: str) -> str:
    if len(text) > MAX_BODY_LENGTH:
        return text[:MAX_BODY_LENGTH] + TRUNCATION_SUFFIX
    return text


def _request_body(request: httpx.Request) -> str | None:
    try:
        content = request.content
    except httpx.RequestNotRead:
        return None
    if not content:
        return None
    return content.decode("utf-8", errors="replace")


class NetworkRecorder:
    """Records httpx traffic through client event hooks.

    Example:
        ```python
        recorder = NetworkRecorder(transport.send)
        with httpx.Client(event_hooks=recorder.event_hooks()) as client:
            client.get("https://example.com/api")
        ```

    Args:
        send: Callable receiving each network message.
    """

    def __init__(self, send: Callable[[StructuredMessage], None]) -> None:
        self._send = send
        self._counter = itertools.count(1)
        self._pending: dict[int, NetworkPayload] = {}

    @property
    def in_flight(self) -> int:
        """Requests sent whose response has not been recorded."""
        return len(self._pending)

    def event_hooks(self) -> dict[str, list[Callable[..., Any]]]:
        """Hooks for ``httpx.Client(event_hooks=...)``."""
        return {"request": [self.on_request], "response": [self.on_response]}

    def async_event_hooks(self) -> dict[str, list[Callable[..., Awaitable[None]]]]:
        """Hooks for ``httpx.AsyncClient(event_hooks=...)``."""
        return {"request": [self.on_request_async], "response": [self.on_response_async]}

    def on_request(self, request: httpx.Request) -> None:
        started = now_ms()
        payload = NetworkPayload(
            id=f"req-{started}-{next(self._counter)}",
            url=str(request.url),
            method=request.method.upper(),
            timestamp=started,
            headers=dict(request.headers),
            body=_request_body(request),
        )
        self._pending[id(request)] = payload
        self._emit(started, payload)

    def on_response(self, response: httpx.Response) -> None:
        response.read()
        self._complete(response)

    async def on_request_async(self, request: httpx.Request) -> None:
        self.on_request(request)

    async def on_response_async(self, response: httpx.Response) -> None:
        await response.aread()
        self._complete(response)

    def _complete(self, response: httpx.Response) -> None:
        request = self._pending.pop(id(response.request), None)
        if request is None:
            return
        finished = now_ms()
        error = None
        if response.status_code >= 400:
            error = f"Request failed with status code {response.status_code}"
        payload = NetworkPayload(
            id=request.id,
            url=request.url,
            method=request.method,
            timestamp=request.timestamp,
            headers=request.headers,
            body=request.body,
            status=response.status_code,
            response_headers=dict(response.headers),
            response_body=_truncate(response.text),
            duration=finished - request.timestamp,
            error=error,
        )
        self._emit(finished, payload)

    def _emit(self, timestamp: int, payload: NetworkPayload) -> None:
        self._send(
            StructuredMessage(
                kind=MessageKind.NETWORK, timestamp=timestamp, payload=payload.to_dict()
            )
        )
