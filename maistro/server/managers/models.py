"""Model catalogue and OpenRouter API key.

Stored as a single JSON object in ``models.json``.  The default model is
what the first prompt of an execution switches to when it does not name a
model of its own.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from loguru import logger
from pydantic import ValidationError

from maistro.server.models.config import ModelSettings

if TYPE_CHECKING:
    from maistro.server.store.base import DocumentStore


class ModelNotAvailableError(ValueError):
    """Raised when a model is not in the available list."""


class MissingApiKeyError(ValueError):
    """Raised when a model switch is requested without an API key configured."""


class ModelManager:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self._settings = ModelSettings()
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        raw = await self._store.load()
        try:
            self._settings = ModelSettings.model_validate(raw if isinstance(raw, dict) else {})
        except ValidationError as exc:
            logger.warning("Invalid model settings, using defaults: {}", exc)
            self._settings = ModelSettings()

    async def _persist(self) -> None:
        await self._store.save(self._settings.to_document())

    async def get_settings(self) -> ModelSettings:
        return self._settings.model_copy(deep=True)

    async def default_model(self) -> str:
        return self._settings.default_model

    async def api_key(self) -> str:
        return self._settings.api_key

    def validate_model(self, model: str) -> None:
        """Raise unless *model* can be switched to.

        Raises ``ModelNotAvailableError`` for unknown models and
        ``MissingApiKeyError`` when no API key is stored.
        """
        if model not in self._settings.available_models:
            raise ModelNotAvailableError(model)
        if not self._settings.api_key:
            msg = "OpenRouter API key is not set"
            raise MissingApiKeyError(msg)

    async def set_default_model(self, model: str) -> ModelSettings:
        """Raises ``ModelNotAvailableError`` if *model* is not in the catalogue."""
        if model not in self._settings.available_models:
            raise ModelNotAvailableError(model)
        async with self._lock:
            self._settings.default_model = model
            await self._persist()
        logger.info("Default model set to {}", model)
        return await self.get_settings()

    async def add_model(self, model: str) -> ModelSettings:
        model = model.strip()
        if not model:
            msg = "Model name must not be empty"
            raise ValueError(msg)
        async with self._lock:
            if model not in self._settings.available_models:
                self._settings.available_models.append(model)
                await self._persist()
        return await self.get_settings()

    async def remove_model(self, model: str) -> ModelSettings:
        """Remove *model* from the catalogue.

        The current default cannot be removed; raises ``ValueError``.
        Raises ``ModelNotAvailableError`` if it is not listed.
        """
        if model not in self._settings.available_models:
            raise ModelNotAvailableError(model)
        if model == self._settings.default_model:
            msg = f"Cannot remove the default model '{model}'"
            raise ValueError(msg)
        async with self._lock:
            self._settings.available_models.remove(model)
            await self._persist()
        return await self.get_settings()

    async def set_api_key(self, api_key: str) -> None:
        async with self._lock:
            self._settings.api_key = api_key.strip()
            await self._persist()
        logger.info("OpenRouter API key updated")
