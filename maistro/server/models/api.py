"""API request / response schemas for the HTTP endpoints.

These sit between HTTP and the managers.  Nested structures (``Prompt``,
``Schedule``, ``Trigger``) are reused from the domain models:

- **Create** schemas validate user input and provide defaults.
- **Update** schemas allow partial updates via ``exclude_unset``.
- Responses reuse the domain models directly; they already serialize to
  the camelCase document shape.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from maistro.server.models.base import CamelModel
from maistro.server.models.config import Prompt, Schedule, Trigger

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigCreate(CamelModel):
    """Input for creating a new configuration."""

    id: str | None = Field(default=None, description="Optional; auto-generated UUID if omitted.")
    name: str
    path: str = ""
    prompts: list[Prompt] = Field(default_factory=list)
    schedule: Schedule | None = None
    trigger: Trigger | None = None


class ConfigUpdate(CamelModel):
    """Partial update -- only fields explicitly set by the caller are applied.

    Routers should use ``body.model_dump(exclude_unset=True)`` to extract
    only the provided fields.
    """

    name: str | None = None
    path: str | None = None
    prompts: list[Prompt] | None = None
    schedule: Schedule | None = None
    trigger: Trigger | None = None


class ConfigMove(CamelModel):
    folder_path: str


class Folder(CamelModel):
    """Virtual folder derived from configuration paths."""

    name: str
    path: str
    parent_path: str


class FolderRename(CamelModel):
    old_path: str
    new_path: str


class FolderDelete(CamelModel):
    path: str


# ---------------------------------------------------------------------------
# MCP server
# ---------------------------------------------------------------------------


class MCPServerCreate(CamelModel):
    """Input for creating or replacing an MCP server definition."""

    id: str | None = Field(default=None, description="Optional; generated as mcp-server-<ms> if omitted.")
    name: str
    command: str
    args: str = ""
    env: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class ModelRef(CamelModel):
    model: str


class ApiKeyUpdate(CamelModel):
    api_key: str


class ModelSettingsResponse(CamelModel):
    """Model settings with the API key reduced to a presence flag."""

    default_model: str
    available_models: list[str]
    has_api_key: bool
    current_model: str | None = None


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class RunResponse(CamelModel):
    """Result of a run request.

    ``needs_reconnect`` is only present when no live WebSocket subscriber is
    registered for the configuration; the client should reconnect and retry.
    """

    success: bool
    message: str
    needs_reconnect: bool | None = None


class ExecutionInfo(CamelModel):
    """Snapshot of one active execution."""

    execution_id: str
    configuration_id: str
    step_index: int
    total_steps: int
    session_name: str
    parent_execution_id: str | None = None
    started_at: datetime
