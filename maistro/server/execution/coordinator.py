"""Execution coordinator -- orchestrates prepare, steps, and trigger hand-off.

The coordinator manages the full lifecycle of one configuration run:

1. **Prepare**: Validate, materialize prompt files, register the execution
2. **Steps**: For each prompt, switch model, attach extensions, run the agent CLI
3. **Hand-off**: After the last step, either emit ``end`` or chain into the
   triggered configuration as a new execution on the same output channel

Events are published by channel key (the root configuration id of the
chain) through the ``ChannelRegistry``.  The pipeline runs to completion
regardless of whether anyone is listening.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from anyio import to_thread

from maistro.server.context import Execution, new_execution_id
from maistro.server.execution.errors import (
    ExecutionError,
    InvalidConfigurationError,
    PreparationFailedError,
    TriggerCycleError,
    TriggerNotFoundError,
)
from maistro.server.execution.switcher import ModelSwitchError
from maistro.server.models.enums import ExecutionStatus
from maistro.server.models.events import (
    ChannelEvent,
    CompleteEvent,
    EndEvent,
    ErrorEvent,
    OutputEvent,
    StartEvent,
)
from maistro.server.registry import ShuttingDownError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from pathlib import Path

    from maistro.server.channels import ChannelRegistry
    from maistro.server.execution.extensions import ExtensionResolver
    from maistro.server.execution.process import ProcessRunner
    from maistro.server.execution.prompts import PromptMaterializer
    from maistro.server.execution.sessions import SessionJournal
    from maistro.server.execution.switcher import ModelSwitcher
    from maistro.server.models.config import Configuration, Prompt
    from maistro.server.registry import ExecutionRegistry

logger = logging.getLogger(__name__)

ALL_PROMPTS_COMPLETED = "All prompts completed"


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass
class ExecutionResult:
    """Outcome of a configuration run, including any triggered chain."""

    status: ExecutionStatus
    config_ids: list[str] = field(default_factory=list)
    """Configurations run, in chain order."""
    completed_steps: int = 0
    execution_id: str | None = None
    """Id of the last execution in the chain."""
    error_kind: str | None = None
    error_message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == ExecutionStatus.COMPLETED


class ConfigLookup(Protocol):
    async def find_config(self, config_id: str) -> Configuration | None: ...


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------


class ExecutionCoordinator:
    """Runs configurations against the agent CLI and publishes their events."""

    def __init__(
        self,
        *,
        configs: ConfigLookup,
        materializer: PromptMaterializer,
        sessions: SessionJournal,
        switcher: ModelSwitcher,
        extensions: ExtensionResolver,
        runner: ProcessRunner,
        channels: ChannelRegistry,
        registry: ExecutionRegistry,
        executable: str,
        step_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._configs = configs
        self._materializer = materializer
        self._sessions = sessions
        self._switcher = switcher
        self._extensions = extensions
        self._runner = runner
        self._channels = channels
        self._registry = registry
        self._executable = executable
        self._step_delay = step_delay
        self._sleep = sleep
        self._tasks: set[asyncio.Task[ExecutionResult]] = set()

    @property
    def executable(self) -> str:
        return self._executable

    # -- Background ------------------------------------------------------------

    def start(self, config: Configuration, channel_key: str | None = None) -> asyncio.Task[ExecutionResult]:
        """Schedule ``execute_configuration`` as a tracked background task."""
        task = asyncio.create_task(
            self.execute_configuration(config, channel_key),
            name=f"maistro-run-{config.id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def join(self) -> None:
        """Wait for every background execution started so far."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> int:
        """Cancel outstanding background executions.  Returns how many were cancelled."""
        tasks = [t for t in self._tasks if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        return len(tasks)

    # -- Entry point -----------------------------------------------------------

    async def execute_configuration(
        self,
        config: Configuration | None,
        channel_key: str | None = None,
    ) -> ExecutionResult:
        """Run *config* and any configurations it triggers, to a terminal state.

        Never raises for execution failures: they are published as a single
        ``error`` event and reflected in the returned result.
        """
        key = channel_key or (config.id if config is not None else "")
        if config is None or not config.prompts:
            exc = InvalidConfigurationError("Invalid configuration or no prompts to execute")
            await self._emit(key, ErrorEvent(message=str(exc)))
            return ExecutionResult(
                status=ExecutionStatus.FAILED,
                config_ids=[config.id] if config is not None else [],
                error_kind=exc.kind,
                error_message=str(exc),
            )

        result = ExecutionResult(status=ExecutionStatus.RUNNING)
        current: Configuration = config
        execution: Execution | None = None
        inherited_session: str | None = None
        try:
            while True:
                result.config_ids.append(current.id)
                child = await self._prepare(current, key, parent=execution, inherited_session=inherited_session)
                if execution is not None:
                    self._registry.unregister(execution.execution_id)
                execution = child
                result.execution_id = execution.execution_id

                await self._run_steps(execution)
                result.completed_steps += execution.total_steps

                trigger = current.trigger
                if trigger is None:
                    execution.status = ExecutionStatus.COMPLETED
                    await self._emit(key, EndEvent(message=ALL_PROMPTS_COMPLETED))
                    result.status = ExecutionStatus.COMPLETED
                    logger.info("Execution %s completed", execution.execution_id)
                    return result

                current = await self._resolve_trigger(key, trigger.config_id, result.config_ids)
                inherited_session = execution.session_name if trigger.preserve_session else None
                if inherited_session is not None:
                    await self._emit(key, OutputEvent(content="Using shared session for triggered configuration\n"))
        except ExecutionError as exc:
            if execution is not None:
                execution.status = ExecutionStatus.FAILED
            message = str(exc) if exc.step_index is None else f"Error executing prompt {exc.step_index + 1}: {exc}"
            logger.warning("Execution of %s failed (%s): %s", current.id, exc.kind, message)
            await self._emit(key, ErrorEvent(message=message))
            result.status = ExecutionStatus.FAILED
            result.error_kind = exc.kind
            result.error_message = message
            return result
        except ShuttingDownError:
            message = "Server is shutting down; execution refused"
            await self._emit(key, ErrorEvent(message=message))
            result.status = ExecutionStatus.FAILED
            result.error_kind = "shutting_down"
            result.error_message = message
            return result
        finally:
            if execution is not None:
                self._registry.unregister(execution.execution_id)

    # -- Phases ----------------------------------------------------------------

    async def _prepare(
        self,
        config: Configuration,
        channel_key: str,
        *,
        parent: Execution | None,
        inherited_session: str | None,
    ) -> Execution:
        prompt_paths = await self._materializer.materialize(config)

        if self._registry.by_configuration(config.id):
            logger.warning("Configuration %s is already running; both runs share one agent session", config.id)

        execution = Execution(
            execution_id=new_execution_id(config.id),
            config=config,
            channel_key=channel_key,
            session_name=inherited_session or self._sessions.name_for(config.id),
            inherited_session=inherited_session is not None,
            parent_execution_id=parent.execution_id if parent is not None else None,
            prompt_paths=prompt_paths,
        )
        self._registry.register(execution)
        logger.info(
            "Execution %s started (%d prompts, session=%s, parent=%s)",
            execution.execution_id,
            execution.total_steps,
            execution.session_name,
            execution.parent_execution_id,
        )
        return execution

    async def _run_steps(self, execution: Execution) -> None:
        key = execution.channel_key
        total = execution.total_steps
        for index, (prompt, path) in enumerate(zip(execution.config.prompts, execution.prompt_paths, strict=True)):
            if index > 0 and self._step_delay > 0:
                await self._sleep(self._step_delay)
            execution.step_index = index
            await self._emit(key, StartEvent(prompt_index=index, total_prompts=total, prompt=prompt.text))
            try:
                await self._run_step(execution, index, prompt, path)
            except ExecutionError as exc:
                exc.step_index = index
                raise
            await self._emit(key, CompleteEvent(prompt_index=index))

    async def _run_step(self, execution: Execution, index: int, prompt: Prompt, path: Path) -> None:
        key = execution.channel_key
        await self._switch_model(key, prompt, index)

        fresh = index == 0 and not execution.inherited_session
        if fresh:
            await self._sessions.reset(execution.session_name)

        for name in await self._extensions.describe(prompt.mcp_server_ids):
            await self._emit(key, OutputEvent(content=f"Using MCP extension: {name}\n"))

        if not await to_thread.run_sync(path.exists):
            msg = f"Prompt file missing: {path}"
            raise PreparationFailedError(msg)

        args = build_agent_args(execution.session_name, path, resume=not fresh)
        args += await self._extensions.build_args(prompt.mcp_server_ids)

        await self._emit(key, OutputEvent(content="Starting execution...\n"))
        await self._runner.run(self._executable, args, lambda text: self._emit(key, OutputEvent(content=text)))

    async def _switch_model(self, key: str, prompt: Prompt, index: int) -> None:
        if prompt.model:
            model = prompt.model
        elif index == 0:
            model = await self._switcher.default_model()
        else:
            return

        await self._emit(key, OutputEvent(content=f"Switching to model: {model}...\n"))
        try:
            await self._switcher.switch_to_model(model)
        except ModelSwitchError as exc:
            logger.warning("Model switch to %s failed: %s", model, exc)
            await self._emit(key, OutputEvent(content=f"Warning: {exc}. Continuing with the current model.\n"))
            return
        await self._emit(key, OutputEvent(content=f"Model set to: {model}\n"))

    async def _resolve_trigger(self, key: str, target_id: str, chain: list[str]) -> Configuration:
        await self._emit(key, OutputEvent(content=f"\nTriggering execution of: {target_id}\n"))
        target = await self._configs.find_config(target_id)
        if target is None:
            raise TriggerNotFoundError(target_id)
        if target.id in chain:
            raise TriggerCycleError(target.id, list(chain))
        if not target.prompts:
            msg = f"Triggered configuration has no prompts to execute: {target_id}"
            raise InvalidConfigurationError(msg)
        await self._emit(key, OutputEvent(content=f"\nStarting execution of triggered configuration: {target.name}\n"))
        return target

    async def _emit(self, key: str, event: ChannelEvent) -> None:
        await self._channels.publish(key, event)


def build_agent_args(session_name: str, prompt_path: Path, *, resume: bool) -> list[str]:
    """Core ``run`` arguments for one step; extension flags are appended by the caller."""
    args = ["run"]
    if resume:
        args.append("--resume")
    args += ["--name", session_name, "--instructions", str(prompt_path)]
    return args
