"""Locate the agent CLI executable."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

AGENT_NAME = "goose"

_COMMON_DIRS = ("/usr/local/bin", "/usr/bin", "/bin", "~/.local/bin", "~/bin")


def find_agent_executable(explicit: str | None = None) -> str:
    """Resolve the agent CLI to run.

    Order: *explicit* (returned as-is), ``PATH``, well-known install
    directories.  Falls back to the bare name so the shell can still try
    ``PATH`` at spawn time.
    """
    if explicit:
        return explicit

    found = shutil.which(AGENT_NAME)
    if found:
        return found

    for directory in _COMMON_DIRS:
        candidate = Path(directory).expanduser() / AGENT_NAME
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return str(candidate)

    logger.warning("%s executable not found; relying on PATH at spawn time", AGENT_NAME)
    return AGENT_NAME
