"""Configuration CRUD and virtual folder operations.

Configurations live in one JSON list.  The manager keeps the parsed list in
memory (call ``load`` once at startup) and writes the full document back on
every mutation, serialized by a lock.

Folders are virtual: they exist only as the ``path`` of the configurations
they contain.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import TYPE_CHECKING

from loguru import logger
from pydantic import ValidationError

from maistro.server.models.api import ConfigCreate, Folder
from maistro.server.models.config import Configuration

if TYPE_CHECKING:
    from maistro.server.store.base import DocumentStore


class ConfigurationNotFoundError(LookupError):
    """Raised when a configuration is not found."""


class DuplicateConfigurationError(ValueError):
    """Raised when a configuration with the given ID already exists."""


class InvalidConfigurationDataError(ValueError):
    """Raised when a configuration fails validation before being saved."""


def _parent_of(path: str) -> str:
    return path.rsplit("/", 1)[0] if "/" in path else ""


def _in_folder(config_path: str, folder: str) -> bool:
    return config_path == folder or config_path.startswith(f"{folder}/")


def validate_configuration(config: Configuration) -> None:
    """Reject configurations that could never run.

    Raises ``InvalidConfigurationDataError`` describing the first problem.
    """
    if not config.id.strip():
        msg = "Configuration id must not be empty"
        raise InvalidConfigurationDataError(msg)
    if "/" in config.id or "\\" in config.id or config.id in (".", ".."):
        msg = f"Configuration id must not contain path separators: {config.id!r}"
        raise InvalidConfigurationDataError(msg)
    if not config.name.strip():
        msg = "Configuration name must not be empty"
        raise InvalidConfigurationDataError(msg)
    if not config.prompts:
        msg = "Configuration must contain at least one prompt"
        raise InvalidConfigurationDataError(msg)
    if config.trigger is not None and not config.trigger.config_id.strip():
        msg = "Trigger must reference a configuration id"
        raise InvalidConfigurationDataError(msg)


class ConfigManager:
    """In-memory view of ``configs.json`` with write-through persistence."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self._configs: list[Configuration] = []
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        """(Re)load all configurations from the store.

        Entries that fail validation are skipped with a warning rather than
        taking the whole document down.
        """
        raw = await self._store.load()
        configs: list[Configuration] = []
        for entry in raw if isinstance(raw, list) else []:
            try:
                configs.append(Configuration.model_validate(entry))
            except ValidationError as exc:
                logger.warning("Skipping invalid configuration entry: {}", exc)
        self._configs = configs
        logger.info("Loaded {} configurations", len(configs))

    async def _persist(self) -> None:
        await self._store.save([c.to_document() for c in self._configs])

    # -- Read ------------------------------------------------------------------

    async def list_configs(self, folder: str | None = None) -> list[Configuration]:
        """All configurations, or only those directly inside *folder*."""
        if folder is None:
            return list(self._configs)
        folder = folder.strip("/")
        return [c for c in self._configs if c.path == folder]

    async def find_config(self, config_id: str) -> Configuration | None:
        for config in self._configs:
            if config.id == config_id:
                return config
        return None

    async def get_config(self, config_id: str) -> Configuration:
        """Get a configuration by ID.  Raises ``ConfigurationNotFoundError`` if missing."""
        config = await self.find_config(config_id)
        if config is None:
            raise ConfigurationNotFoundError(config_id)
        return config

    # -- Write -----------------------------------------------------------------

    async def create_config(self, body: ConfigCreate) -> Configuration:
        """Create a configuration.  Raises ``DuplicateConfigurationError`` if the ID exists."""
        config = Configuration.model_validate({**body.model_dump(), "id": body.id or str(uuid.uuid4())})
        validate_configuration(config)
        async with self._lock:
            if any(c.id == config.id for c in self._configs):
                raise DuplicateConfigurationError(config.id)
            self._configs.append(config)
            await self._persist()
        logger.info("Configuration created: {} ({})", config.id, config.name)
        return config

    async def save_config(self, config: Configuration) -> Configuration:
        """Insert or replace a configuration by ID."""
        validate_configuration(config)
        async with self._lock:
            for index, existing in enumerate(self._configs):
                if existing.id == config.id:
                    self._configs[index] = config
                    break
            else:
                self._configs.append(config)
            await self._persist()
        return config

    async def update_config(self, config_id: str, changes: dict) -> Configuration:
        """Apply a partial update.  Raises ``ConfigurationNotFoundError`` if missing."""
        current = await self.get_config(config_id)
        if not changes:
            return current
        merged = Configuration.model_validate({**current.model_dump(), **changes, "id": config_id})
        return await self.save_config(merged)

    async def delete_config(self, config_id: str) -> bool:
        """Delete a configuration.  Returns ``False`` if it did not exist."""
        async with self._lock:
            remaining = [c for c in self._configs if c.id != config_id]
            if len(remaining) == len(self._configs):
                return False
            self._configs = remaining
            await self._persist()
        logger.info("Configuration deleted: {}", config_id)
        return True

    async def move_config(self, config_id: str, folder_path: str) -> Configuration:
        """Move a configuration into *folder_path* (``""`` for the root)."""
        return await self.update_config(config_id, {"path": folder_path.strip("/")})

    # -- Folders ---------------------------------------------------------------

    async def list_folders(self) -> list[Folder]:
        """Every folder level implied by configuration paths, sorted by path."""
        folders: dict[str, Folder] = {}
        for config in self._configs:
            current = ""
            for part in filter(None, config.path.split("/")):
                current = f"{current}/{part}" if current else part
                folders.setdefault(current, Folder(name=part, path=current, parent_path=_parent_of(current)))
        return [folders[key] for key in sorted(folders)]

    async def rename_folder(self, old_path: str, new_path: str) -> int:
        """Re-root every configuration under *old_path*.  Returns the number moved."""
        old_path, new_path = old_path.strip("/"), new_path.strip("/")
        async with self._lock:
            moved = 0
            for index, config in enumerate(self._configs):
                if _in_folder(config.path, old_path):
                    suffix = config.path[len(old_path) :]
                    self._configs[index] = config.model_copy(update={"path": f"{new_path}{suffix}".strip("/")})
                    moved += 1
            if moved:
                await self._persist()
        return moved

    async def delete_folder(self, path: str) -> int:
        """Remove a folder, moving its configurations (and sub-folders') to the parent."""
        path = path.strip("/")
        parent = _parent_of(path)
        async with self._lock:
            moved = 0
            for index, config in enumerate(self._configs):
                if _in_folder(config.path, path):
                    self._configs[index] = config.model_copy(update={"path": parent})
                    moved += 1
            if moved:
                await self._persist()
        return moved
