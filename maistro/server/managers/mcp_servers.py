"""MCP server definitions.

Stored as a JSON list in ``mcp-servers.json``.  Each definition becomes one
``--with-extension`` argument when a prompt references it.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

from loguru import logger
from pydantic import ValidationError

from maistro.server.models.config import MCPServer

if TYPE_CHECKING:
    from maistro.server.models.api import MCPServerCreate
    from maistro.server.store.base import DocumentStore


class MCPServerNotFoundError(LookupError):
    """Raised when an MCP server definition is not found."""


class InvalidMCPServerError(ValueError):
    """Raised when an MCP server definition is missing a name or command."""


def extension_string(server: MCPServer) -> str:
    """Render *server* the way the agent CLI expects an extension argument.

    Environment assignments come first, then the command and its arguments::

        API_TOKEN=abc npx -y @modelcontextprotocol/server-github
    """
    env = " ".join(f"{key}={value}" for key, value in server.env.items())
    return f"{env} {server.command} {server.args}".strip()


class MCPServerManager:
    """In-memory view of ``mcp-servers.json`` with write-through persistence."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self._servers: list[MCPServer] = []
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        raw = await self._store.load()
        servers: list[MCPServer] = []
        for entry in raw if isinstance(raw, list) else []:
            try:
                servers.append(MCPServer.model_validate(entry))
            except ValidationError as exc:
                logger.warning("Skipping invalid MCP server entry: {}", exc)
        self._servers = servers
        logger.info("Loaded {} MCP servers", len(servers))

    async def _persist(self) -> None:
        await self._store.save([s.to_document() for s in self._servers])

    async def list_servers(self) -> list[MCPServer]:
        return list(self._servers)

    async def find_server(self, server_id: str) -> MCPServer | None:
        for server in self._servers:
            if server.id == server_id:
                return server
        return None

    async def get_server(self, server_id: str) -> MCPServer:
        """Get a server by ID.  Raises ``MCPServerNotFoundError`` if missing."""
        server = await self.find_server(server_id)
        if server is None:
            raise MCPServerNotFoundError(server_id)
        return server

    async def extension_string(self, server_id: str) -> str:
        """Extension argument for *server_id*.  Raises ``MCPServerNotFoundError`` if missing."""
        return extension_string(await self.get_server(server_id))

    async def save_server(self, body: MCPServerCreate) -> MCPServer:
        """Create or replace a server definition.

        The ID defaults to ``mcp-server-<epoch ms>``.  Raises
        ``InvalidMCPServerError`` when name or command is blank.
        """
        if not body.name.strip() or not body.command.strip():
            msg = "MCP server requires a name and a command"
            raise InvalidMCPServerError(msg)
        server = MCPServer(
            id=body.id or f"mcp-server-{int(time.time() * 1000)}",
            name=body.name,
            command=body.command,
            args=body.args,
            env=body.env,
        )
        async with self._lock:
            for index, existing in enumerate(self._servers):
                if existing.id == server.id:
                    self._servers[index] = server
                    break
            else:
                self._servers.append(server)
            await self._persist()
        logger.info("MCP server saved: {} ({})", server.id, server.name)
        return server

    async def delete_server(self, server_id: str) -> bool:
        """Delete a server definition.  Returns ``False`` if it did not exist."""
        async with self._lock:
            remaining = [s for s in self._servers if s.id != server_id]
            if len(remaining) == len(self._servers):
                return False
            self._servers = remaining
            await self._persist()
        logger.info("MCP server deleted: {}", server_id)
        return True
