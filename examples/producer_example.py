"""Example producer emitting debugging events as SDKMSG log lines.

Run with:
    python examples/producer_example.py | python -m debugbridge decode

Output:
    The producer writes framed lines to stdout; ``debugbridge decode``
    reassembles them and prints one NDJSON message per line.

Instrumentation:
    Application log records, an httpx request, a state snapshot and a
    performance measurement are all sent through one DebuggerSDK.
"""

import logging

import httpx

from debugbridge import DebuggerSDK, LogLineTransport

logger = logging.getLogger("example.app")


def handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"user": "ada", "items": list(range(500))})


def main() -> None:
    sdk = DebuggerSDK(LogLineTransport())
    sdk.install_logging(logger, level=logging.INFO)
    logger.setLevel(logging.INFO)

    try:
        logger.info("App started", extra={"build": "1.4.2"})
        sdk.send_state("session", {"user": None, "screen": "login"})

        recorder = sdk.network_recorder()
        with sdk.measure("load-profile"), httpx.Client(
            transport=httpx.MockTransport(handler), event_hooks=recorder.event_hooks()
        ) as client:
            # The large response body goes out base64-encoded over several frames
            client.get("https://api.example.com/profile")

        sdk.track_event("checkout", {"items": 3, "total": 42.5})
    finally:
        sdk.destroy()


if __name__ == "__main__":
    main()
