"""Tests for the channel registry, output filtering and the console channel."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from maistro.server.channels import ChannelRegistry, ConsoleChannel, WebSocketChannel, is_meaningful_output
from maistro.server.models.events import EndEvent, ErrorEvent, OutputEvent, StartEvent
from tests.server.fakes import RecordingChannel


class _BrokenChannel:
    is_open = True

    async def send(self, event) -> None:
        raise RuntimeError("socket gone")


@pytest.fixture
def registry() -> ChannelRegistry:
    return ChannelRegistry()


async def test_publish_to_registered_channel(registry: ChannelRegistry) -> None:
    channel = RecordingChannel()
    registry.register("c1", channel)

    sent = await registry.publish("c1", EndEvent(message="done"))

    assert sent is True
    assert channel.summary() == [("end",)]


async def test_publish_without_channel_is_dropped(registry: ChannelRegistry) -> None:
    assert await registry.publish("nobody", EndEvent(message="done")) is False


async def test_closed_channel_is_dropped(registry: ChannelRegistry) -> None:
    channel = RecordingChannel()
    channel.is_open = False
    registry.register("c1", channel)

    assert await registry.publish("c1", EndEvent(message="done")) is False
    assert channel.events == []
    assert registry.is_live("c1") is False


async def test_new_connection_replaces_old(registry: ChannelRegistry) -> None:
    old, new = RecordingChannel(), RecordingChannel()
    registry.register("c1", old)
    registry.register("c1", new)

    await registry.publish("c1", EndEvent(message="done"))

    assert old.events == []
    assert new.summary() == [("end",)]


def test_unregister_only_removes_current(registry: ChannelRegistry) -> None:
    old, new = RecordingChannel(), RecordingChannel()
    registry.register("c1", old)
    registry.register("c1", new)

    assert registry.unregister("c1", old) is False
    assert registry.get("c1") is new
    assert registry.unregister("c1", new) is True
    assert registry.get("c1") is None


async def test_send_failure_is_swallowed(registry: ChannelRegistry) -> None:
    registry.register("c1", _BrokenChannel())

    assert await registry.publish("c1", EndEvent(message="done")) is False


async def test_blank_output_never_sent(registry: ChannelRegistry) -> None:
    channel = RecordingChannel()
    registry.register("c1", channel)

    await registry.publish("c1", OutputEvent(content="  \n\t"))
    await registry.publish("c1", OutputEvent(content="real output"))

    assert channel.outputs() == ["real output"]


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", False),
        ("   \n", False),
        ("logging to /home/u/.local/share/goose/sessions/maistro-c1.jsonl", False),
        ("  logging to session.jsonl\n", False),
        ("\x1b[0m\x1b[1;32m\n", False),
        ("hello", True),
        ("we are logging to a file named notes.txt", True),
    ],
)
def test_is_meaningful_output(text: str, expected: bool) -> None:
    assert is_meaningful_output(text) is expected


async def test_console_channel_writes_events(capsys: pytest.CaptureFixture[str]) -> None:
    channel = ConsoleChannel()

    await channel.send(StartEvent(prompt_index=0, total_prompts=2, prompt="hello"))
    await channel.send(OutputEvent(content="agent says hi\n"))
    await channel.send(EndEvent(message="All prompts completed"))
    await channel.send(ErrorEvent(message="boom"))

    captured = capsys.readouterr()
    assert "[1/2] hello" in captured.out
    assert "agent says hi" in captured.out
    assert "All prompts completed" in captured.out
    assert "Error: boom" in captured.err


async def test_websocket_channel_strips_colour_codes() -> None:
    websocket = MagicMock()
    websocket.send_json = AsyncMock()
    channel = WebSocketChannel(websocket)

    await channel.send(OutputEvent(content="\x1b[1;32mPASS\x1b[0m tests\n"))
    await channel.send(EndEvent(message="All prompts completed"))

    assert websocket.send_json.await_args_list[0].args[0] == {"type": "output", "content": "PASS tests\n"}
    assert websocket.send_json.await_args_list[1].args[0] == {"type": "end", "message": "All prompts completed"}
