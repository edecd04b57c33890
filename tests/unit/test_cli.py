"""Tests for the debugbridge command line."""

import asyncio
import contextlib
import io
import json
from pathlib import Path

import pytest

from debugbridge.adapters.relay.client import RelayClient
from debugbridge.adapters.transports.logline import LogLineTransport
from debugbridge.cli import build_parser, decode_stream, main, run_relay
from debugbridge.core.config import ClientConfig, CodecConfig, RelayConfig
from debugbridge.core.models import MessageKind, StructuredMessage
from debugbridge.core.ports import LineSourcePort
from tests.helpers import RecordingSink, wait_until


def _framed_log(*messages: StructuredMessage) -> str:
    sink = RecordingSink()
    transport = LogLineTransport(sink, CodecConfig(max_chunk_size=24))
    for message in messages:
        transport.send(message)
    noise = "10-19 09:00:00.000  100  100 I ActivityManager: unrelated"
    return "\n".join([noise, *sink.lines, noise]) + "\n"


class TestDecodeCommand:
    @pytest.mark.tier(1)
    @pytest.mark.tra("CLI.Decode.Stream")
    def test_decode_stream_writes_ndjson(self) -> None:
        messages = [
            StructuredMessage(MessageKind.CUSTOM, 1, {"name": "a", "data": "x" * 60}),
            StructuredMessage(MessageKind.PING, 2),
        ]
        out = io.StringIO()

        source = io.StringIO(_framed_log(*messages))
        assert isinstance(source, LineSourcePort)

        count = decode_stream(source, out)

        assert count == 2
        lines = out.getvalue().splitlines()
        assert [json.loads(line) for line in lines] == [m.to_dict() for m in messages]

    @pytest.mark.tier(1)
    @pytest.mark.tra("CLI.Decode.File")
    def test_main_decodes_file(
        self, tmp_path: Path, capsys: pytest.CaptureFixture
    ) -> None:
        log = tmp_path / "logcat.txt"
        log.write_text(_framed_log(StructuredMessage(MessageKind.STATE, 3, {"name": "s"})))

        assert main(["decode", str(log)]) == 0

        assert json.loads(capsys.readouterr().out) == {
            "kind": "state",
            "timestamp": 3,
            "payload": {"name": "s"},
        }


class TestRelayCommand:
    @pytest.mark.tier(1)
    @pytest.mark.tra("CLI.Relay.Args")
    def test_relay_arguments(self) -> None:
        args = build_parser().parse_args(
            ["relay", "--host", "127.0.0.1", "--port", "9000", "--ping-interval", "2.5"]
        )

        assert (args.host, args.port, args.ping_interval) == ("127.0.0.1", 9000, 2.5)

    @pytest.mark.tier(1)
    @pytest.mark.tra("CLI.Relay.Defaults")
    def test_relay_arguments_default_to_none(self) -> None:
        args = build_parser().parse_args(["relay"])

        assert (args.host, args.port, args.ping_interval) == (None, None, None)

    @pytest.mark.tier(1)
    @pytest.mark.tra("CLI.Command.Required")
    def test_command_is_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    @pytest.mark.tier(2)
    @pytest.mark.tra("CLI.Relay.Rebroadcast")
    @pytest.mark.relay
    async def test_run_relay_rebroadcasts(self, unused_port: int) -> None:
        task = asyncio.create_task(
            run_relay(RelayConfig(host="127.0.0.1", port=unused_port))
        )
        url = f"ws://127.0.0.1:{unused_port}"
        producer = RelayClient(ClientConfig(url=url, reconnect_interval=0.05))
        consumer = RelayClient(ClientConfig(url=url, reconnect_interval=0.05))
        received: list[StructuredMessage] = []
        consumer.on(MessageKind.CUSTOM, received.append)
        try:
            consumer.connect()
            assert await consumer.wait_connected(timeout=2)
            producer.connect()
            producer.send(StructuredMessage(MessageKind.CUSTOM, 9, {"name": "relayed"}))

            await wait_until(lambda: len(received) == 1)
            assert received[0].payload == {"name": "relayed"}
        finally:
            for client in (producer, consumer):
                client.disconnect()
                await client.wait_closed()
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
