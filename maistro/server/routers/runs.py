"""Execution endpoints.

Thin HTTP adapter -- the run itself happens in a background task owned by
the coordinator; the response only reports whether anyone is listening.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from loguru import logger

from maistro.server.deps import Channels, Configs, Coordinator, Registry
from maistro.server.models.api import ExecutionInfo, RunResponse

router = APIRouter(tags=["executions"])


@router.post("/run/{config_id}", response_model=RunResponse, response_model_exclude_none=True)
async def run_config(
    config_id: str,
    configs: Configs,
    coordinator: Coordinator,
    channels: Channels,
    registry: Registry,
) -> RunResponse:
    """Start a configuration run.

    The run starts even without a live WebSocket subscriber; its events are
    dropped until one connects and ``needsReconnect`` tells the client so.
    """
    config = await configs.find_config(config_id)
    if config is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Configuration '{config_id}' not found.")
    if registry.is_shutting_down:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail="Server is shutting down.")

    live = channels.is_live(config_id)
    coordinator.start(config)
    if not live:
        logger.info("Run of {} started without a live channel", config_id)
        return RunResponse(
            success=True,
            message="Execution queued, waiting for WebSocket connection",
            needs_reconnect=True,
        )
    return RunResponse(success=True, message="Execution started")


@router.get("/executions/list", response_model=list[ExecutionInfo], response_model_exclude_none=True)
async def list_executions(registry: Registry) -> list[ExecutionInfo]:
    """Snapshot of active executions, oldest first."""
    executions = sorted(registry.all_executions(), key=lambda e: e.started_at)
    return [
        ExecutionInfo(
            execution_id=e.execution_id,
            configuration_id=e.config_id,
            step_index=e.step_index,
            total_steps=e.total_steps,
            session_name=e.session_name,
            parent_execution_id=e.parent_execution_id,
            started_at=e.started_at,
        )
        for e in executions
    ]
