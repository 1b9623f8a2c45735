"""Data models for the server."""

from maistro.server.models.api import (
    ApiKeyUpdate,
    ConfigCreate,
    ConfigMove,
    ConfigUpdate,
    ExecutionInfo,
    Folder,
    FolderDelete,
    FolderRename,
    MCPServerCreate,
    ModelRef,
    ModelSettingsResponse,
    RunResponse,
)
from maistro.server.models.config import (
    Configuration,
    MCPServer,
    ModelSettings,
    Prompt,
    Schedule,
    Trigger,
)
from maistro.server.models.enums import EventType, ExecutionStatus, ScheduleFrequency
from maistro.server.models.events import (
    ChannelEvent,
    CompleteEvent,
    ConnectionEvent,
    EndEvent,
    ErrorEvent,
    HeartbeatAckEvent,
    OutputEvent,
    StartEvent,
)

__all__ = [
    # API schemas
    "ApiKeyUpdate",
    # Events
    "ChannelEvent",
    "CompleteEvent",
    "ConfigCreate",
    "ConfigMove",
    "ConfigUpdate",
    # Configuration
    "Configuration",
    "ConnectionEvent",
    "EndEvent",
    "ErrorEvent",
    # Enums
    "EventType",
    "ExecutionInfo",
    "ExecutionStatus",
    "Folder",
    "FolderDelete",
    "FolderRename",
    "HeartbeatAckEvent",
    "MCPServer",
    "MCPServerCreate",
    "ModelRef",
    "ModelSettings",
    "ModelSettingsResponse",
    "OutputEvent",
    "Prompt",
    "RunResponse",
    "Schedule",
    "ScheduleFrequency",
    "StartEvent",
    "Trigger",
]
