"""Document store interface for the JSON-backed managers.

Each logical store (configurations, MCP servers, model settings) is a single
JSON document: a flat list or an object.  Managers keep the parsed document
in memory and write the whole thing back on every mutation.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DocumentStore(Protocol):
    """Async protocol for loading and saving one JSON document."""

    async def load(self) -> Any:
        """Return the parsed document, creating it with the default if missing."""
        ...

    async def save(self, data: Any) -> None:
        """Replace the stored document with *data*."""
        ...
