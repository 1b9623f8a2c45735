"""Shared test fixtures: isolated settings and a fake agent CLI.

Every test that touches settings gets its own data directory, agent config
path and session directory under ``tmp_path`` so nothing leaks into the
real ``~/.config/goose``.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from maistro.server.settings import MaistroSettings, get_settings

FAKE_AGENT = """#!/bin/sh
echo "agent args: $@"
"""


@pytest.fixture
def fake_agent(tmp_path: Path) -> Path:
    """Executable stand-in for the goose CLI that echoes its arguments."""
    script = tmp_path / "bin" / "goose"
    script.parent.mkdir(parents=True, exist_ok=True)
    script.write_text(FAKE_AGENT, encoding="utf-8")
    script.chmod(0o755)
    return script


@pytest.fixture
def settings_env(tmp_path: Path, fake_agent: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[MaistroSettings]:
    """Point every MAISTRO_* path setting at ``tmp_path`` and reset the settings cache."""
    monkeypatch.setenv("MAISTRO_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("MAISTRO_AGENT_COMMAND", str(fake_agent))
    monkeypatch.setenv("MAISTRO_AGENT_SHELL", "/bin/sh")
    monkeypatch.setenv("MAISTRO_AGENT_CONFIG_PATH", str(tmp_path / "goose" / "config.yaml"))
    monkeypatch.setenv("MAISTRO_AGENT_SESSIONS_DIR", str(tmp_path / "sessions"))
    monkeypatch.setenv("MAISTRO_STEP_DELAY", "0")
    monkeypatch.setenv("MAISTRO_MANAGE_CRONTAB", "false")
    monkeypatch.delenv("DEBUG", raising=False)
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
