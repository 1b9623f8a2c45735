"""Execution failure kinds.

Every error is terminal for its execution and is reported to the output
channel as exactly one ``error`` event carrying ``str(exc)``.
"""

from __future__ import annotations


class ExecutionError(Exception):
    """Base class for execution failures."""

    kind: str = "execution_error"
    step_index: int | None = None
    """Zero-based prompt index the failure happened in, when it belongs to a step."""


class InvalidConfigurationError(ExecutionError):
    """Configuration is missing or has no prompts to execute."""

    kind = "invalid_configuration"


class PreparationFailedError(ExecutionError):
    """A prompt file could not be written, or disappeared before its step ran."""

    kind = "preparation_failed"


class SpawnFailedError(ExecutionError):
    """The agent CLI could not be started."""

    kind = "spawn_failed"


class CommandFailedError(ExecutionError):
    """The agent CLI exited with a non-zero status."""

    kind = "command_failed"

    def __init__(self, exit_code: int | None, stderr: str = "") -> None:
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"Command exited with code {exit_code}. Error output: {stderr}")


class StepTimeoutError(CommandFailedError):
    """The per-step watchdog expired and the process was killed."""

    kind = "step_timeout"

    def __init__(self, timeout: float, stderr: str = "") -> None:
        self.timeout = timeout
        self.exit_code = None
        self.stderr = stderr
        Exception.__init__(self, f"Command timed out after {timeout:g}s. Error output: {stderr}")


class TriggerNotFoundError(ExecutionError):
    """The configuration referenced by a trigger does not exist."""

    kind = "trigger_not_found"

    def __init__(self, config_id: str) -> None:
        self.config_id = config_id
        super().__init__(f"Triggered configuration not found: {config_id}")


class TriggerCycleError(ExecutionError):
    """A trigger points back at a configuration already run in this chain."""

    kind = "trigger_cycle"

    def __init__(self, config_id: str, chain: list[str]) -> None:
        self.config_id = config_id
        self.chain = chain
        super().__init__(f"Trigger cycle detected: {' -> '.join([*chain, config_id])}")
