"""Tests for MCP server definitions and extension resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from maistro.server.execution.extensions import ExtensionResolver
from maistro.server.managers.mcp_servers import (
    InvalidMCPServerError,
    MCPServerManager,
    MCPServerNotFoundError,
    extension_string,
)
from maistro.server.models.api import MCPServerCreate
from maistro.server.models.config import MCPServer
from maistro.server.store.local import JsonDocumentStore


@pytest.fixture
async def manager(tmp_path: Path) -> MCPServerManager:
    manager = MCPServerManager(JsonDocumentStore(tmp_path / "mcp-servers.json", list))
    await manager.load()
    return manager


async def test_save_generates_id(manager: MCPServerManager) -> None:
    server = await manager.save_server(MCPServerCreate(name="Files", command="npx"))

    assert server.id.startswith("mcp-server-")
    assert await manager.get_server(server.id) == server


async def test_save_replaces_existing(manager: MCPServerManager) -> None:
    await manager.save_server(MCPServerCreate(id="fs", name="Files", command="npx"))
    await manager.save_server(MCPServerCreate(id="fs", name="Files v2", command="uvx"))

    servers = await manager.list_servers()
    assert len(servers) == 1
    assert servers[0].command == "uvx"


async def test_save_requires_name_and_command(manager: MCPServerManager) -> None:
    with pytest.raises(InvalidMCPServerError):
        await manager.save_server(MCPServerCreate(name="Files", command=" "))


async def test_delete(manager: MCPServerManager) -> None:
    await manager.save_server(MCPServerCreate(id="fs", name="Files", command="npx"))

    assert await manager.delete_server("fs") is True
    assert await manager.delete_server("fs") is False
    with pytest.raises(MCPServerNotFoundError):
        await manager.get_server("fs")


@pytest.mark.parametrize(
    ("server", "expected"),
    [
        (MCPServer(id="a", name="A", command="npx", args="-y pkg"), "npx -y pkg"),
        (MCPServer(id="a", name="A", command="npx", env={"K": "v", "J": "w"}), "K=v J=w npx"),
        (MCPServer(id="a", name="A", command="uvx", args="srv", env={"T": "1"}), "T=1 uvx srv"),
    ],
)
def test_extension_string(server: MCPServer, expected: str) -> None:
    assert extension_string(server) == expected


async def test_extension_string_by_id(manager: MCPServerManager) -> None:
    await manager.save_server(MCPServerCreate(id="gh", name="GitHub", command="npx", args="-y gh", env={"T": "x"}))

    assert await manager.extension_string("gh") == "T=x npx -y gh"
    with pytest.raises(MCPServerNotFoundError):
        await manager.extension_string("missing")


async def test_resolver_skips_unknown_ids(manager: MCPServerManager) -> None:
    await manager.save_server(MCPServerCreate(id="fs", name="Files", command="npx", args="fs-server"))
    await manager.save_server(MCPServerCreate(id="gh", name="GitHub", command="npx", args="gh-server"))
    resolver = ExtensionResolver(manager)

    args = await resolver.build_args(["gh", "missing", "fs"])

    assert args == ["--with-extension", "npx gh-server", "--with-extension", "npx fs-server"]
    assert await resolver.describe(["missing", "fs"]) == ["Files"]
    assert await resolver.build_args([]) == []
