"""BDD step definitions for log-line reassembly features."""

from dataclasses import dataclass, field

import pytest
from pytest_bdd import given, parsers, then, when

from debugbridge.core.decoder import LogLineDecoder
from debugbridge.core.encoding.frames import FrameEncoder
from debugbridge.core.models import Frame, MessageKind, StructuredMessage
from debugbridge.core.reassembly import ReassemblyBuffer
from tests.helpers import FakeClock


@dataclass
class ReassemblyScenarioContext:
    """Shared state between steps in a reassembly scenario."""

    clock: FakeClock = field(default_factory=FakeClock)
    decoder: LogLineDecoder | None = None
    message: StructuredMessage | None = None
    frames: list[Frame] = field(default_factory=list)
    fed: int = 0
    decoded: list[StructuredMessage | None] = field(default_factory=list)


@pytest.fixture
def ctx() -> ReassemblyScenarioContext:
    """Fresh scenario context for each test."""
    return ReassemblyScenarioContext()


def _feed(ctx: ReassemblyScenarioContext, frames: list[Frame]) -> list[StructuredMessage]:
    assert ctx.decoder is not None
    results = [ctx.decoder.feed(frame.render()) for frame in frames]
    ctx.fed += len(frames)
    return [message for message in results if message is not None]


# === Background Steps ===
@given("a log-line decoder with a fake clock")
def step_decoder(ctx: ReassemblyScenarioContext) -> None:
    ctx.decoder = LogLineDecoder(ReassemblyBuffer(clock=ctx.clock))


# === Message Steps ===
@given(parsers.parse('a custom message named "{name}" at timestamp {timestamp:d}'))
def step_named_message(ctx: ReassemblyScenarioContext, name: str, timestamp: int) -> None:
    ctx.message = StructuredMessage(
        MessageKind.CUSTOM, timestamp, {"name": name, "data": {"a": 1}}
    )


@given(parsers.parse("a custom message with a {length:d} character body"))
def step_large_message(ctx: ReassemblyScenarioContext, length: int) -> None:
    ctx.message = StructuredMessage(
        MessageKind.CUSTOM, 1000, {"name": "bulk", "data": "b" * length}
    )


# === Framing Steps ===
@when("the message is framed with the default limits")
def step_frame(ctx: ReassemblyScenarioContext) -> None:
    assert ctx.message is not None
    ctx.frames = FrameEncoder().encode(ctx.message)


@when("the frames are reversed")
def step_reverse(ctx: ReassemblyScenarioContext) -> None:
    ctx.frames.reverse()


@when(parsers.parse("the first {count:d} frames are fed"))
def step_feed_first(ctx: ReassemblyScenarioContext, count: int) -> None:
    assert _feed(ctx, ctx.frames[:count]) == []


@when(parsers.parse("{ms:d} milliseconds pass"))
def step_advance(ctx: ReassemblyScenarioContext, ms: int) -> None:
    ctx.clock.advance(ms)


@when("the buffer is swept")
def step_sweep(ctx: ReassemblyScenarioContext) -> None:
    assert ctx.decoder is not None
    ctx.decoder.buffer.sweep()


@when(parsers.parse('the line "{line}" is fed'))
def step_feed_line(ctx: ReassemblyScenarioContext, line: str) -> None:
    assert ctx.decoder is not None
    ctx.decoded.append(ctx.decoder.feed(line))


# === Assertion Steps ===
@then(parsers.parse("{count:d} frame is produced"))
@then(parsers.parse("{count:d} frames are produced"))
def step_frame_count(ctx: ReassemblyScenarioContext, count: int) -> None:
    assert len(ctx.frames) == count


@then(parsers.parse('the first frame starts with "{prefix}"'))
def step_first_frame_prefix(ctx: ReassemblyScenarioContext, prefix: str) -> None:
    assert ctx.frames[0].render().startswith(prefix)


@then(parsers.parse('every frame is flagged "{flag}"'))
def step_flag(ctx: ReassemblyScenarioContext, flag: str) -> None:
    assert all(frame.compressed is (flag == "Z") for frame in ctx.frames)


@then("feeding the frames yields the original message")
def step_feed_all(ctx: ReassemblyScenarioContext) -> None:
    assert _feed(ctx, ctx.frames) == [ctx.message]


@then("feeding the remaining frames yields the original message")
def step_feed_rest(ctx: ReassemblyScenarioContext) -> None:
    assert _feed(ctx, ctx.frames[ctx.fed :]) == [ctx.message]


@then("feeding the remaining frames yields nothing")
def step_feed_rest_nothing(ctx: ReassemblyScenarioContext) -> None:
    assert _feed(ctx, ctx.frames[ctx.fed :]) == []


@then(parsers.parse("{count:d} message is pending"))
@then(parsers.parse("{count:d} messages are pending"))
def step_pending(ctx: ReassemblyScenarioContext, count: int) -> None:
    assert ctx.decoder is not None
    assert ctx.decoder.buffer.pending_count == count


@then("nothing is decoded")
def step_nothing_decoded(ctx: ReassemblyScenarioContext) -> None:
    assert ctx.decoded == [None]
