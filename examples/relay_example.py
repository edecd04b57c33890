"""Example relay with a device-side client and a desktop consumer.

Run with:
    python examples/relay_example.py

Flow:
    A RelayServer listens on an ephemeral port and re-broadcasts every
    inbound message. A "device" RelayClient queues events before it is
    connected; a "desktop" RelayClient prints everything it receives.
"""

import asyncio
import logging

from debugbridge import (
    ClientConfig,
    MessageKind,
    RelayClient,
    RelayConfig,
    RelayServer,
    StructuredMessage,
)
from debugbridge.core.clock import now_ms


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    relay = RelayServer(RelayConfig(host="127.0.0.1", port=0))

    async def rebroadcast(connection_id: str, message: StructuredMessage) -> None:
        await relay.broadcast(message)

    relay.on_message(rebroadcast)
    await relay.start()
    url = f"ws://127.0.0.1:{relay.port}"

    desktop = RelayClient(ClientConfig(url=url))
    received = asyncio.Event()

    def show(message: StructuredMessage) -> None:
        print(f"desktop got {message.kind.value}: {message.payload}")
        received.set()

    desktop.on(MessageKind.CUSTOM, show)
    desktop.connect()
    await desktop.wait_connected(timeout=5)

    device = RelayClient(ClientConfig(url=url))
    # Queued until the connection opens, then flushed oldest-first
    device.send(StructuredMessage(MessageKind.CUSTOM, now_ms(), {"name": "boot"}))
    device.connect()

    await asyncio.wait_for(received.wait(), timeout=5)

    for client in (device, desktop):
        client.disconnect()
        await client.wait_closed()
    await relay.stop()


if __name__ == "__main__":
    asyncio.run(main())
