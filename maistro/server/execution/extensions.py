"""Tool-binding resolution: MCP server ids -> ``--with-extension`` flags."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from maistro.server.managers.mcp_servers import extension_string

if TYPE_CHECKING:
    from collections.abc import Iterable

    from maistro.server.managers.mcp_servers import MCPServerManager
    from maistro.server.models.config import MCPServer

logger = logging.getLogger(__name__)


class ExtensionResolver:
    def __init__(self, servers: MCPServerManager) -> None:
        self._servers = servers

    async def resolve(self, server_ids: Iterable[str]) -> list[MCPServer]:
        """Known servers for *server_ids*, in order.  Unknown ids are skipped."""
        resolved: list[MCPServer] = []
        for server_id in server_ids:
            server = await self._servers.find_server(server_id)
            if server is None:
                logger.warning("MCP server %s not found; skipping", server_id)
                continue
            resolved.append(server)
        return resolved

    async def build_args(self, server_ids: Iterable[str]) -> list[str]:
        args: list[str] = []
        for server in await self.resolve(server_ids):
            value = extension_string(server)
            if value:
                args.extend(["--with-extension", value])
        return args

    async def describe(self, server_ids: Iterable[str]) -> list[str]:
        return [server.name for server in await self.resolve(server_ids)]
