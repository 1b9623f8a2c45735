"""Wire events sent over the execution WebSocket.

Every event serializes to a flat JSON object with a ``type`` discriminator::

    {"type": "start", "promptIndex": 0, "totalPrompts": 2, "prompt": "hello"}
"""

from __future__ import annotations

from typing import Literal

from maistro.server.models.base import CamelModel
from maistro.server.models.enums import EventType


class ChannelEvent(CamelModel):
    """Base envelope; subclasses pin ``type``."""

    type: EventType

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ConnectionEvent(ChannelEvent):
    type: Literal[EventType.CONNECTION] = EventType.CONNECTION
    message: str


class OutputEvent(ChannelEvent):
    type: Literal[EventType.OUTPUT] = EventType.OUTPUT
    content: str


class StartEvent(ChannelEvent):
    type: Literal[EventType.START] = EventType.START
    prompt_index: int
    total_prompts: int
    prompt: str


class CompleteEvent(ChannelEvent):
    type: Literal[EventType.COMPLETE] = EventType.COMPLETE
    prompt_index: int


class ErrorEvent(ChannelEvent):
    type: Literal[EventType.ERROR] = EventType.ERROR
    message: str


class EndEvent(ChannelEvent):
    type: Literal[EventType.END] = EventType.END
    message: str


class HeartbeatAckEvent(ChannelEvent):
    type: Literal[EventType.HEARTBEAT_ACK] = EventType.HEARTBEAT_ACK
    timestamp: int
