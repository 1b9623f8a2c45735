"""In-process execution registry.

Tracks active executions for the executions listing and graceful shutdown.
Ephemeral -- empty on process restart.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from maistro.server.context import Execution


class ShuttingDownError(RuntimeError):
    """The server is draining and accepts no new executions."""


class ExecutionRegistry:
    """Active executions keyed by execution id.

    ``_drain_event`` is set whenever nothing is registered; shutdown waits on it.
    """

    def __init__(self) -> None:
        self._executions: dict[str, Execution] = {}
        self._drain_event = asyncio.Event()
        self._drain_event.set()
        self._shutting_down = False

    # -- Mutation --------------------------------------------------------------

    def register(self, execution: Execution) -> None:
        """Raises ``ShuttingDownError`` once ``begin_shutdown`` has been called."""
        if self._shutting_down:
            raise ShuttingDownError(execution.config_id)
        self._executions[execution.execution_id] = execution
        self._drain_event.clear()
        logger.debug("Registry: +{} ({} active)", execution.execution_id, len(self._executions))

    def unregister(self, execution_id: str) -> Execution | None:
        """Drop *execution_id*; unknown ids are ignored and return ``None``."""
        execution = self._executions.pop(execution_id, None)
        if execution is not None:
            logger.debug("Registry: -{} ({} active)", execution_id, len(self._executions))
        if not self._executions:
            self._drain_event.set()
        return execution

    # -- Query -----------------------------------------------------------------

    def get(self, execution_id: str) -> Execution | None:
        return self._executions.get(execution_id)

    def by_configuration(self, config_id: str) -> list[Execution]:
        """Return all active executions of a configuration."""
        return [e for e in self._executions.values() if e.config_id == config_id]

    def all_executions(self) -> list[Execution]:
        return list(self._executions.values())

    @property
    def active_count(self) -> int:
        return len(self._executions)

    # -- Shutdown --------------------------------------------------------------

    @property
    def is_shutting_down(self) -> bool:
        return self._shutting_down

    def begin_shutdown(self) -> None:
        """Refuse every later ``register`` call; running executions continue."""
        self._shutting_down = True
        logger.info("Registry: refusing new executions ({} still active)", len(self._executions))

    async def wait_until_drained(self, timeout: float | None = None) -> bool:
        """``True`` once no execution is registered, ``False`` if *timeout* passes first."""
        if self._drain_event.is_set():
            return True
        try:
            async with asyncio.timeout(timeout):
                await self._drain_event.wait()
        except TimeoutError:
            logger.warning(
                "Registry: {} executions still active after {}s: {}",
                len(self._executions),
                timeout,
                ", ".join(sorted(self._executions)),
            )
            return False
        return True
