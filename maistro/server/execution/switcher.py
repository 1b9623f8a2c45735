"""Model switching through the agent CLI's YAML config.

The agent CLI has no per-invocation model flag that survives ``--resume``,
so switching means rewriting its ``config.yaml`` to point at OpenRouter
with the requested model before the next invocation.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from anyio import to_thread

from maistro.server.store.local import atomic_write

if TYPE_CHECKING:
    from maistro.server.managers.models import ModelManager

logger = logging.getLogger(__name__)

PROVIDER = "openrouter"


class ModelSwitchError(RuntimeError):
    """Raised when the agent CLI config could not be pointed at a model."""


class ModelSwitcher:
    def __init__(self, models: ModelManager, config_path: str | Path) -> None:
        self._models = models
        self._config_path = Path(config_path).expanduser()

    @property
    def config_path(self) -> Path:
        return self._config_path

    async def switch_to_model(self, model: str) -> None:
        """Make *model* the agent CLI's active model.

        Raises ``ModelSwitchError`` if the model is not available, no API key
        is configured, or the config file cannot be read or written.
        """
        try:
            self._models.validate_model(model)
        except ValueError as exc:
            msg = f"Failed to update model config for {model}: {exc}"
            raise ModelSwitchError(msg) from exc

        api_key = await self._models.api_key()
        try:
            await to_thread.run_sync(self._write_model, model, api_key)
        except (OSError, yaml.YAMLError) as exc:
            logger.exception("Could not update agent config at %s", self._config_path)
            msg = f"Failed to update model config for {model}: {exc}"
            raise ModelSwitchError(msg) from exc
        logger.info("Agent config switched to model %s", model)

    async def default_model(self) -> str:
        return await self._models.default_model()

    async def switch_to_default_model(self) -> str:
        model = await self.default_model()
        await self.switch_to_model(model)
        return model

    async def current_model(self) -> str | None:
        """Model the agent CLI is configured to use, or ``None`` if unknown."""
        try:
            config = await to_thread.run_sync(self._read_config)
        except (OSError, yaml.YAMLError):
            logger.warning("Could not read agent config at %s", self._config_path, exc_info=True)
            return None
        if config.get("GOOSE_MODEL"):
            return str(config["GOOSE_MODEL"])
        openrouter = (config.get("provider_settings") or {}).get(PROVIDER) or {}
        return openrouter.get("model")

    # -- Sync helpers (run in thread pool) -------------------------------------

    def _read_config(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}
        data = yaml.safe_load(self._config_path.read_text(encoding="utf-8"))
        return data if isinstance(data, dict) else {}

    def _write_model(self, model: str, api_key: str) -> None:
        config = self._read_config()
        config["provider"] = PROVIDER
        config["GOOSE_PROVIDER"] = PROVIDER
        config["GOOSE_MODEL"] = model
        provider_settings = config.setdefault("provider_settings", {})
        provider_settings.setdefault(PROVIDER, {})["api_key"] = api_key
        atomic_write(self._config_path, yaml.safe_dump(config, sort_keys=False))
