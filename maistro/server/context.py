"""Runtime execution context.

``Execution`` holds the in-flight bookkeeping for one run of one
configuration.  It is created by the execution coordinator, registered in
the ``ExecutionRegistry`` while it runs and discarded when it terminates or
hands off to a triggered child.
"""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from maistro.server.models.enums import ExecutionStatus

if TYPE_CHECKING:
    from maistro.server.models.config import Configuration


def new_execution_id(config_id: str) -> str:
    """``{config_id}-{epoch_ms}-{8 hex chars}``; unique even within one millisecond."""
    return f"{config_id}-{int(time.time() * 1000)}-{secrets.token_hex(4)}"


@dataclass
class Execution:
    """In-flight state for a single configuration run."""

    # -- Identity --------------------------------------------------------------
    execution_id: str
    config: Configuration
    channel_key: str
    """Configuration id whose output channel receives this execution's events (the chain root)."""

    # -- Session ---------------------------------------------------------------
    session_name: str
    inherited_session: bool = False
    parent_execution_id: str | None = None

    # -- Progress --------------------------------------------------------------
    prompt_paths: list[Path] = field(default_factory=list)
    step_index: int = 0
    status: ExecutionStatus = ExecutionStatus.RUNNING
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def config_id(self) -> str:
        return self.config.id

    @property
    def total_steps(self) -> int:
        return len(self.prompt_paths)
