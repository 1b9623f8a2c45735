"""MCP server definition endpoints (RPC-style)."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from maistro.server.deps import MCPServers
from maistro.server.managers.mcp_servers import InvalidMCPServerError, MCPServerNotFoundError
from maistro.server.models.api import MCPServerCreate
from maistro.server.models.config import MCPServer

router = APIRouter(prefix="/mcp-servers", tags=["mcp-servers"])


@router.get("/list", response_model=list[MCPServer])
async def list_servers(servers: MCPServers) -> list[MCPServer]:
    return await servers.list_servers()


@router.post("/create", response_model=MCPServer, status_code=status.HTTP_201_CREATED)
async def create_server(body: MCPServerCreate, servers: MCPServers) -> MCPServer:
    """Create a server definition, or replace the one with the same ID."""
    try:
        return await servers.save_server(body)
    except InvalidMCPServerError as exc:
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from None


@router.get("/{server_id}/get", response_model=MCPServer)
async def get_server(server_id: str, servers: MCPServers) -> MCPServer:
    try:
        return await servers.get_server(server_id)
    except MCPServerNotFoundError:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"MCP server '{server_id}' not found.") from None


@router.post("/{server_id}/delete", status_code=status.HTTP_204_NO_CONTENT)
async def delete_server(server_id: str, servers: MCPServers) -> None:
    if not await servers.delete_server(server_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"MCP server '{server_id}' not found.")
