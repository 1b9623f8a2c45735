"""FastAPI dependency injection for the service graph.

Usage in route handlers::

    @router.get("/list")
    async def list_configs(configs: Configs) -> list[Configuration]:
        ...

Dependencies take an ``HTTPConnection`` so they resolve for both HTTP and
WebSocket routes.  They raise HTTP 503 if the services were not initialised
(the lifespan has not run).
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, status
from starlette.requests import HTTPConnection

from maistro.server.channels import ChannelRegistry
from maistro.server.execution.coordinator import ExecutionCoordinator
from maistro.server.execution.switcher import ModelSwitcher
from maistro.server.managers.configs import ConfigManager
from maistro.server.managers.mcp_servers import MCPServerManager
from maistro.server.managers.models import ModelManager
from maistro.server.registry import ExecutionRegistry
from maistro.server.scheduling import CrontabManager
from maistro.server.services import Services


def get_services(conn: HTTPConnection) -> Services:
    services: Services | None = getattr(conn.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Services not initialised.",
        )
    return services


def get_configs(services: Annotated[Services, Depends(get_services)]) -> ConfigManager:
    return services.configs


def get_mcp_servers(services: Annotated[Services, Depends(get_services)]) -> MCPServerManager:
    return services.mcp_servers


def get_models(services: Annotated[Services, Depends(get_services)]) -> ModelManager:
    return services.models


def get_switcher(services: Annotated[Services, Depends(get_services)]) -> ModelSwitcher:
    return services.switcher


def get_coordinator(services: Annotated[Services, Depends(get_services)]) -> ExecutionCoordinator:
    return services.coordinator


def get_channels(services: Annotated[Services, Depends(get_services)]) -> ChannelRegistry:
    return services.channels


def get_registry(services: Annotated[Services, Depends(get_services)]) -> ExecutionRegistry:
    return services.registry


def get_crontab(services: Annotated[Services, Depends(get_services)]) -> CrontabManager:
    return services.crontab


# -- Annotated type aliases for concise route signatures ---------------------

Configs = Annotated[ConfigManager, Depends(get_configs)]
MCPServers = Annotated[MCPServerManager, Depends(get_mcp_servers)]
Models = Annotated[ModelManager, Depends(get_models)]
Switcher = Annotated[ModelSwitcher, Depends(get_switcher)]
Coordinator = Annotated[ExecutionCoordinator, Depends(get_coordinator)]
Channels = Annotated[ChannelRegistry, Depends(get_channels)]
Registry = Annotated[ExecutionRegistry, Depends(get_registry)]
Crontab = Annotated[CrontabManager, Depends(get_crontab)]
