"""Prompt materialization.

The agent CLI reads instructions from a file, so every prompt of a
configuration is written to ``{prompts_dir}/{config_id}_prompt_{index}.md``
before the first step runs.  Files are overwritten on every run and never
deleted.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from anyio import to_thread

from maistro.server.execution.errors import PreparationFailedError

if TYPE_CHECKING:
    from maistro.server.models.config import Configuration

logger = logging.getLogger(__name__)


def prompt_file_name(config_id: str, index: int) -> str:
    return f"{config_id}_prompt_{index}.md"


class PromptMaterializer:
    def __init__(self, prompts_dir: str | Path) -> None:
        self._prompts_dir = Path(prompts_dir).expanduser().resolve()

    @property
    def prompts_dir(self) -> Path:
        return self._prompts_dir

    async def materialize(self, config: Configuration) -> list[Path]:
        """Write one file per prompt and return their absolute paths, in order.

        Raises ``PreparationFailedError`` if any file cannot be written.
        """
        try:
            return await to_thread.run_sync(self._write_all, config)
        except OSError as exc:
            logger.exception("Failed to write prompt files for %s", config.id)
            msg = f"Failed to prepare prompts: {exc}"
            raise PreparationFailedError(msg) from exc

    def _write_all(self, config: Configuration) -> list[Path]:
        self._prompts_dir.mkdir(parents=True, exist_ok=True)
        paths: list[Path] = []
        for index, prompt in enumerate(config.prompts):
            path = self._prompts_dir / prompt_file_name(config.id, index)
            path.write_text(prompt.text, encoding="utf-8")
            paths.append(path)
        logger.debug("Materialized %d prompt files for %s", len(paths), config.id)
        return paths
