"""Service wiring.

``create_services`` builds every long-lived collaborator from settings.  The
app lifespan stores the result on ``app.state.services``; the CLI builds its
own for one-shot runs.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

from maistro.server.channels import ChannelRegistry
from maistro.server.execution.coordinator import ExecutionCoordinator
from maistro.server.execution.discovery import find_agent_executable
from maistro.server.execution.extensions import ExtensionResolver
from maistro.server.execution.process import ProcessRunner
from maistro.server.execution.prompts import PromptMaterializer
from maistro.server.execution.sessions import SessionJournal
from maistro.server.execution.switcher import ModelSwitcher
from maistro.server.managers.configs import ConfigManager
from maistro.server.managers.mcp_servers import MCPServerManager
from maistro.server.managers.models import ModelManager
from maistro.server.models.config import ModelSettings
from maistro.server.registry import ExecutionRegistry
from maistro.server.scheduling import CrontabManager
from maistro.server.store.local import JsonDocumentStore

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from maistro.server.settings import MaistroSettings


@dataclass
class Services:
    settings: MaistroSettings
    configs: ConfigManager
    mcp_servers: MCPServerManager
    models: ModelManager
    switcher: ModelSwitcher
    registry: ExecutionRegistry
    channels: ChannelRegistry
    coordinator: ExecutionCoordinator
    crontab: CrontabManager

    async def load(self) -> None:
        """Load every JSON document from disk (creating defaults as needed)."""
        await self.configs.load()
        await self.mcp_servers.load()
        await self.models.load()


def create_services(
    settings: MaistroSettings,
    *,
    runner: ProcessRunner | None = None,
    switcher: ModelSwitcher | None = None,
    executable: str | None = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> Services:
    """Build the service graph.  Keyword arguments replace collaborators in tests."""
    configs = ConfigManager(JsonDocumentStore(settings.configs_file, list))
    mcp_servers = MCPServerManager(JsonDocumentStore(settings.mcp_servers_file, list))
    models = ModelManager(JsonDocumentStore(settings.models_file, lambda: ModelSettings().to_document()))
    switcher = switcher or ModelSwitcher(models, settings.agent_config_path)
    registry = ExecutionRegistry()
    channels = ChannelRegistry()

    coordinator = ExecutionCoordinator(
        configs=configs,
        materializer=PromptMaterializer(settings.prompts_dir),
        sessions=SessionJournal(settings.agent_sessions_dir, settings.session_prefix),
        switcher=switcher,
        extensions=ExtensionResolver(mcp_servers),
        runner=runner or ProcessRunner(shell=settings.agent_shell, timeout=settings.step_timeout),
        channels=channels,
        registry=registry,
        executable=executable or find_agent_executable(settings.agent_command),
        step_delay=settings.step_delay,
        sleep=sleep,
    )

    return Services(
        settings=settings,
        configs=configs,
        mcp_servers=mcp_servers,
        models=models,
        switcher=switcher,
        registry=registry,
        channels=channels,
        coordinator=coordinator,
        crontab=CrontabManager(settings.data_path, enabled=settings.manage_crontab),
    )
