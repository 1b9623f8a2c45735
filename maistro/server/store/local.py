"""Local filesystem JSON document store.

One file per logical store under the data directory::

    {data_dir}/configs.json
    {data_dir}/mcp-servers.json
    {data_dir}/models.json

Blocking file work runs in ``anyio``'s worker threads.  Saves go to a
sibling temp file that is then renamed over the target, so readers only
ever see a complete document.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from collections.abc import Callable
from functools import partial
from pathlib import Path
from typing import Any

from anyio import to_thread
from loguru import logger


class JsonDocumentStore:
    """Local filesystem implementation of the DocumentStore protocol.

    A missing file is created from ``default()`` on first load.  A file that
    cannot be parsed is logged and treated as the default; it is left on disk
    untouched until the next save overwrites it.
    """

    def __init__(self, path: str | Path, default: Callable[[], Any]) -> None:
        self._path = Path(path)
        self._default = default

    @property
    def path(self) -> Path:
        return self._path

    # -- Read ------------------------------------------------------------------

    async def load(self) -> Any:
        return await to_thread.run_sync(self._load_sync)

    def _load_sync(self) -> Any:
        if not self._path.exists():
            data = self._default()
            atomic_write(self._path, _dumps(data))
            return data
        try:
            return json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.exception("Could not parse {}; falling back to defaults", self._path)
            return self._default()

    # -- Write -----------------------------------------------------------------

    async def save(self, data: Any) -> None:
        await to_thread.run_sync(partial(atomic_write, self._path, _dumps(data)))


# -- Helpers (called from worker threads) -------------------------------------


def _dumps(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def atomic_write(path: Path, data: str) -> None:
    """Write data atomically: temp file + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise
