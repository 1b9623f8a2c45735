"""Service configuration loaded from MAISTRO_* environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MaistroSettings(BaseSettings):
    """Maistro server settings.

    All fields are read from environment variables with the ``MAISTRO_``
    prefix.  For example, ``MAISTRO_STEP_DELAY=0.5`` maps to ``step_delay``.
    The verbose-logging switch additionally honours a plain ``DEBUG=true``.
    """

    model_config = SettingsConfigDict(
        env_prefix="MAISTRO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "WARNING"
    debug: bool = Field(default=False, validation_alias=AliasChoices("MAISTRO_DEBUG", "DEBUG"))
    """Log every subprocess I/O chunk and all lifecycle messages."""

    # -- Server ----------------------------------------------------------------
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000
    graceful_shutdown_timeout: int = 600
    """Seconds to wait for running executions before cancelling them."""

    # -- Data storage ----------------------------------------------------------
    data_dir: str = "./data"
    """Root for ``configs.json``, ``mcp-servers.json``, ``models.json`` and prompt files."""

    # -- Agent CLI -------------------------------------------------------------
    agent_command: str | None = None
    """Explicit path to the goose executable.  Discovered on PATH when unset."""

    agent_shell: str = "/bin/bash"
    """Shell each agent invocation runs under (``<shell> -c <command>``)."""

    agent_config_path: Path = Field(default_factory=lambda: Path.home() / ".config" / "goose" / "config.yaml")
    agent_sessions_dir: Path = Field(default_factory=lambda: Path.home() / ".local" / "share" / "goose" / "sessions")
    session_prefix: str = "maistro"

    # -- Execution -------------------------------------------------------------
    step_delay: float = 1.0
    """Pause between consecutive prompts of one execution."""

    step_timeout: float | None = None
    """Optional watchdog per prompt.  Off by default: a hung agent blocks its execution."""

    # -- Scheduling ------------------------------------------------------------
    manage_crontab: bool = False
    """Mirror enabled schedules into the user's crontab."""

    # -- Helpers ---------------------------------------------------------------

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level.upper()

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser().resolve()

    @property
    def prompts_dir(self) -> Path:
        return self.data_path / "prompts"

    @property
    def configs_file(self) -> Path:
        return self.data_path / "configs.json"

    @property
    def mcp_servers_file(self) -> Path:
        return self.data_path / "mcp-servers.json"

    @property
    def models_file(self) -> Path:
        return self.data_path / "models.json"


@lru_cache(maxsize=1)
def get_settings() -> MaistroSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``get_settings.cache_clear()`` in tests to force a
    re-read after overriding env vars.
    """
    return MaistroSettings()
