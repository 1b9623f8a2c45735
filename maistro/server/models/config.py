"""Configuration domain models.

These mirror the JSON documents kept under the data directory
(``configs.json``, ``mcp-servers.json``, ``models.json``).  Legacy shapes are
normalized here, once, when a document is loaded: a prompt stored as a bare
string becomes a ``Prompt`` and a trigger without a target becomes ``None``.
Everything past this module can rely on the normalized form.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator, model_validator

from maistro.server.models.base import CamelModel
from maistro.server.models.enums import ScheduleFrequency

DEFAULT_MODEL = "anthropic/claude-3.7-sonnet"

DEFAULT_AVAILABLE_MODELS = [
    "anthropic/claude-3.7-sonnet:thinking",
    "anthropic/claude-3.7-sonnet",
    "openai/o3-mini-high",
    "openai/gpt-4o-2024-11-20",
]

# -- Configuration components --------------------------------------------------


class Prompt(CamelModel):
    """One unit of text fed to the agent CLI."""

    text: str
    mcp_server_ids: list[str] = Field(default_factory=list, description="Tool servers attached to this step.")
    model: str | None = Field(default=None, description="Model override; None keeps the active model.")

    @model_validator(mode="before")
    @classmethod
    def _from_plain_text(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"text": data}
        return data


class Schedule(CamelModel):
    """When a configuration should run unattended."""

    enabled: bool = False
    frequency: ScheduleFrequency = ScheduleFrequency.DAILY
    time: str = Field(default="09:00", description="Local time as HH:MM.")
    days: list[str] = Field(default_factory=list, description="Weekday abbreviations (mon..sun) for weekly runs.")
    day_of_month: int | None = Field(default=None, ge=1, le=31)


class Trigger(CamelModel):
    """Hand-off into another configuration once all prompts succeed."""

    config_id: str
    preserve_session: bool = False


# -- Top-level configuration ---------------------------------------------------


class Configuration(CamelModel):
    """A named, ordered list of prompts with optional schedule and trigger."""

    id: str
    name: str
    path: str = Field(default="", description="Slash-delimited virtual folder; empty string is the root.")
    prompts: list[Prompt] = Field(default_factory=list)
    schedule: Schedule | None = None
    trigger: Trigger | None = None

    @field_validator("path", mode="before")
    @classmethod
    def _normalize_path(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip("/")
        return value

    @field_validator("trigger", mode="before")
    @classmethod
    def _drop_empty_trigger(cls, value: Any) -> Any:
        if isinstance(value, dict) and not (value.get("configId") or value.get("config_id")):
            return None
        return value


# -- MCP servers ---------------------------------------------------------------


class MCPServer(CamelModel):
    """A tool server the agent CLI can launch as an extension."""

    id: str
    name: str
    command: str
    args: str = ""
    env: dict[str, str] = Field(default_factory=dict)

    @field_validator("args", mode="before")
    @classmethod
    def _join_args(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, list):
            return " ".join(str(v) for v in value)
        return value


# -- Models --------------------------------------------------------------------


class ModelSettings(CamelModel):
    """Model catalogue and OpenRouter credentials used for model switching."""

    default_model: str = DEFAULT_MODEL
    api_key: str = ""
    available_models: list[str] = Field(default_factory=lambda: list(DEFAULT_AVAILABLE_MODELS))
