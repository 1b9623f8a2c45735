"""Output channels: where execution events go.

A ``ChannelRegistry`` maps each configuration id to at most one live
subscriber.  The coordinator publishes by key and never holds a channel
itself, so a client that reconnects mid-run receives the remaining events.
Events for a key without a live subscriber are dropped.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import click
from loguru import logger
from starlette.websockets import WebSocketState

from maistro.server.models.events import (
    ChannelEvent,
    CompleteEvent,
    EndEvent,
    ErrorEvent,
    OutputEvent,
    StartEvent,
)

if TYPE_CHECKING:
    from fastapi import WebSocket

# The agent CLI announces its session journal on every invocation.
_JOURNAL_BANNER = re.compile(r"^\s*logging to.*\.jsonl\s*$")

# Colour codes from FORCE_COLOR=true; the browser renders plain text.
_ANSI_SGR = re.compile(r"\x1b\[\d+(?:;\d+)*m")


def strip_ansi(text: str) -> str:
    return _ANSI_SGR.sub("", text)


def is_meaningful_output(text: str) -> bool:
    """False for chunks that are blank once colour codes are removed, and for the journal banner."""
    stripped = strip_ansi(text).strip()
    return bool(stripped) and not _JOURNAL_BANNER.match(stripped)


@runtime_checkable
class OutputChannel(Protocol):
    """One subscriber for one configuration's events."""

    @property
    def is_open(self) -> bool: ...

    async def send(self, event: ChannelEvent) -> None: ...


class WebSocketChannel:
    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket

    @property
    def websocket(self) -> WebSocket:
        return self._websocket

    @property
    def is_open(self) -> bool:
        return (
            self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def send(self, event: ChannelEvent) -> None:
        if isinstance(event, OutputEvent):
            event = event.model_copy(update={"content": strip_ansi(event.content)})
        await self._websocket.send_json(event.to_wire())


class ConsoleChannel:
    """Writes events to the terminal, for ``maistro run``."""

    is_open = True

    async def send(self, event: ChannelEvent) -> None:
        if isinstance(event, OutputEvent):
            click.echo(event.content, nl=False)
        elif isinstance(event, StartEvent):
            click.secho(f"\n[{event.prompt_index + 1}/{event.total_prompts}] {event.prompt}", bold=True)
        elif isinstance(event, CompleteEvent):
            click.secho(f"\nPrompt {event.prompt_index + 1} completed", fg="green")
        elif isinstance(event, EndEvent):
            click.secho(event.message, fg="green")
        elif isinstance(event, ErrorEvent):
            click.secho(f"Error: {event.message}", fg="red", err=True)


class ChannelRegistry:
    """Single-slot map of configuration id -> output channel."""

    def __init__(self) -> None:
        self._channels: dict[str, OutputChannel] = {}

    def register(self, config_id: str, channel: OutputChannel) -> None:
        """Install *channel* for *config_id*, silently replacing any previous one."""
        if config_id in self._channels:
            logger.debug("Channel for {} replaced by a new connection", config_id)
        self._channels[config_id] = channel

    def unregister(self, config_id: str, channel: OutputChannel) -> bool:
        """Remove *channel* only if it is still the registered one."""
        if self._channels.get(config_id) is channel:
            del self._channels[config_id]
            return True
        return False

    def get(self, config_id: str) -> OutputChannel | None:
        return self._channels.get(config_id)

    def is_live(self, config_id: str) -> bool:
        channel = self._channels.get(config_id)
        return channel is not None and channel.is_open

    async def publish(self, config_id: str, event: ChannelEvent) -> bool:
        """Deliver *event* to the subscriber for *config_id*.

        Returns ``True`` if it was sent.  Missing or closed subscribers, empty
        output and send failures all drop the event; none of them raise.
        """
        if isinstance(event, OutputEvent) and not is_meaningful_output(event.content):
            return False
        channel = self._channels.get(config_id)
        if channel is None or not channel.is_open:
            logger.debug("No live channel for {}; dropping {} event", config_id, event.type)
            return False
        try:
            await channel.send(event)
        except Exception:
            logger.opt(exception=True).warning("Failed to send {} event to {}", event.type, config_id)
            return False
        return True
