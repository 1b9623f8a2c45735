"""Agent session naming and reset.

The session name is a pure function of the configuration id, so repeated
runs of one configuration share a name.  A fresh run deletes the agent's
session journal first; steps after the first (and inherited sessions)
resume it instead.
"""

from __future__ import annotations

import logging
from pathlib import Path

from anyio import to_thread

logger = logging.getLogger(__name__)


class SessionJournal:
    def __init__(self, sessions_dir: str | Path, prefix: str = "maistro") -> None:
        self._sessions_dir = Path(sessions_dir).expanduser()
        self._prefix = prefix

    def name_for(self, config_id: str) -> str:
        return f"{self._prefix}-{config_id}"

    def path_for(self, session_name: str) -> Path:
        return self._sessions_dir / f"{session_name}.jsonl"

    async def reset(self, session_name: str) -> bool:
        """Delete the journal for *session_name*, best-effort.

        Returns ``True`` if a file was removed.  Failures are logged and
        swallowed; a stale journal only means the agent resumes old context.
        """
        path = self.path_for(session_name)
        try:
            removed = await to_thread.run_sync(_unlink_if_exists, path)
        except OSError:
            logger.warning("Could not delete session file %s", path, exc_info=True)
            return False
        if removed:
            logger.debug("Deleted session file %s", path)
        return removed


def _unlink_if_exists(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True
