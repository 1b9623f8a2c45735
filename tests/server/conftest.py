"""Shared fixtures for server tests: a wired service graph and HTTP client."""

from __future__ import annotations

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from maistro.server.app import app
from maistro.server.channels import ChannelRegistry
from maistro.server.models.config import DEFAULT_MODEL
from maistro.server.services import Services, create_services
from maistro.server.settings import MaistroSettings
from tests.server.fakes import FakeProcessRunner


@pytest.fixture
def runner() -> FakeProcessRunner:
    return FakeProcessRunner()


@pytest.fixture
def sleep() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def switcher() -> AsyncMock:
    switcher = AsyncMock()
    switcher.default_model.return_value = DEFAULT_MODEL
    switcher.current_model.return_value = None
    return switcher


@pytest.fixture
async def services(
    settings_env: MaistroSettings,
    runner: FakeProcessRunner,
    switcher: AsyncMock,
    sleep: AsyncMock,
) -> Services:
    """Fully wired services with a fake runner and a recording ``sleep``.

    The step delay is 1s so tests can assert on the (mocked) pauses.

    The model switcher is an ``AsyncMock`` so no agent config file is
    touched; ``default_model`` returns the stock default.
    """
    settings = settings_env.model_copy(update={"step_delay": 1.0})
    services = create_services(settings, runner=runner, switcher=switcher, executable="goose", sleep=sleep)
    await services.load()
    return services


@pytest.fixture
def channels(services: Services) -> ChannelRegistry:
    return services.channels


@pytest.fixture
async def client(services: Services) -> AsyncIterator[AsyncClient]:
    """Async HTTP client wired to the app with the test service graph.

    The app lifespan does NOT run under ``ASGITransport``, so the services
    are pre-set on ``app.state``.
    """
    app.state.services = services

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await services.coordinator.join()
    app.state.services = None
