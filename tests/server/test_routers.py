"""HTTP endpoint tests against the in-process app (no lifespan)."""

from __future__ import annotations

from unittest.mock import AsyncMock

from httpx import AsyncClient

from maistro.server.app import app
from maistro.server.context import Execution
from maistro.server.models.config import DEFAULT_MODEL, Configuration
from maistro.server.services import Services
from tests.server.fakes import FakeProcessRunner, listen

CONFIG = {
    "id": "daily-report",
    "name": "Daily report",
    "path": "reports/daily",
    "prompts": ["Summarize yesterday", {"text": "Write it up", "mcpServerIds": [], "model": "openai/o3-mini-high"}],
}


async def _create(client: AsyncClient, **overrides) -> dict:
    response = await client.post("/api/configs/create", json={**CONFIG, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


async def test_health_needs_no_services(client: AsyncClient) -> None:
    app.state.services = None

    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------


async def test_create_and_get_config(client: AsyncClient) -> None:
    created = await _create(client)

    assert created["prompts"][0] == {"text": "Summarize yesterday", "mcpServerIds": [], "model": None}
    assert created["prompts"][1]["model"] == "openai/o3-mini-high"

    response = await client.get("/api/configs/daily-report/get")
    assert response.status_code == 200
    assert response.json() == created


async def test_create_generates_id(client: AsyncClient) -> None:
    created = await _create(client, id=None)

    assert created["id"]
    assert created["id"] != "daily-report"


async def test_create_duplicate_conflicts(client: AsyncClient) -> None:
    await _create(client)

    response = await client.post("/api/configs/create", json=CONFIG)
    assert response.status_code == 409


async def test_create_without_prompts_rejected(client: AsyncClient) -> None:
    response = await client.post("/api/configs/create", json={**CONFIG, "prompts": []})
    assert response.status_code == 422


async def test_get_missing_config(client: AsyncClient) -> None:
    response = await client.get("/api/configs/nope/get")
    assert response.status_code == 404


async def test_list_configs_by_folder(client: AsyncClient) -> None:
    await _create(client)
    await _create(client, id="other", path="")

    everything = (await client.get("/api/configs/list")).json()
    in_folder = (await client.get("/api/configs/list", params={"folder": "reports/daily"})).json()

    assert {c["id"] for c in everything} == {"daily-report", "other"}
    assert [c["id"] for c in in_folder] == ["daily-report"]


async def test_partial_update(client: AsyncClient) -> None:
    await _create(client)

    response = await client.post("/api/configs/daily-report/update", json={"name": "Renamed"})

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Renamed"
    assert body["path"] == "reports/daily"
    assert len(body["prompts"]) == 2


async def test_update_missing_config(client: AsyncClient) -> None:
    response = await client.post("/api/configs/nope/update", json={"name": "x"})
    assert response.status_code == 404


async def test_update_to_no_prompts_rejected(client: AsyncClient) -> None:
    await _create(client)

    response = await client.post("/api/configs/daily-report/update", json={"prompts": []})
    assert response.status_code == 422


async def test_delete_config(client: AsyncClient) -> None:
    await _create(client)

    response = await client.post("/api/configs/daily-report/delete")
    assert response.status_code == 204
    assert (await client.get("/api/configs/daily-report/get")).status_code == 404
    assert (await client.post("/api/configs/daily-report/delete")).status_code == 404


async def test_move_config(client: AsyncClient) -> None:
    await _create(client)

    response = await client.post("/api/configs/daily-report/move", json={"folderPath": "/archive/"})

    assert response.status_code == 200
    assert response.json()["path"] == "archive"


# ---------------------------------------------------------------------------
# Folders
# ---------------------------------------------------------------------------


async def test_folders(client: AsyncClient) -> None:
    await _create(client)
    await _create(client, id="weekly", path="reports/weekly")

    folders = (await client.get("/api/configs/folders/list")).json()
    assert folders == [
        {"name": "reports", "path": "reports", "parentPath": ""},
        {"name": "daily", "path": "reports/daily", "parentPath": "reports"},
        {"name": "weekly", "path": "reports/weekly", "parentPath": "reports"},
    ]

    renamed = await client.post("/api/configs/folders/rename", json={"oldPath": "reports", "newPath": "old"})
    assert renamed.json() == {"moved": 2}
    assert (await client.get("/api/configs/weekly/get")).json()["path"] == "old/weekly"

    deleted = await client.post("/api/configs/folders/delete", json={"path": "old/weekly"})
    assert deleted.json() == {"moved": 1}
    assert (await client.get("/api/configs/weekly/get")).json()["path"] == "old"


# ---------------------------------------------------------------------------
# MCP servers
# ---------------------------------------------------------------------------


async def test_mcp_server_crud(client: AsyncClient) -> None:
    response = await client.post(
        "/api/mcp-servers/create",
        json={"id": "fs", "name": "Filesystem", "command": "npx", "args": "-y server-fs", "env": {"ROOT": "/tmp"}},
    )
    assert response.status_code == 201

    listed = (await client.get("/api/mcp-servers/list")).json()
    assert listed == [{"id": "fs", "name": "Filesystem", "command": "npx", "args": "-y server-fs", "env": {"ROOT": "/tmp"}}]

    assert (await client.get("/api/mcp-servers/fs/get")).status_code == 200
    assert (await client.post("/api/mcp-servers/fs/delete")).status_code == 204
    assert (await client.get("/api/mcp-servers/fs/get")).status_code == 404
    assert (await client.post("/api/mcp-servers/fs/delete")).status_code == 404


async def test_mcp_server_requires_command(client: AsyncClient) -> None:
    response = await client.post("/api/mcp-servers/create", json={"name": "Broken", "command": "  "})
    assert response.status_code == 422


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


async def test_model_settings(client: AsyncClient, switcher: AsyncMock) -> None:
    switcher.current_model.return_value = "openai/o3-mini-high"

    body = (await client.get("/api/models/get")).json()

    assert body["defaultModel"] == DEFAULT_MODEL
    assert body["hasApiKey"] is False
    assert body["currentModel"] == "openai/o3-mini-high"
    assert "apiKey" not in body


async def test_model_catalogue_changes(client: AsyncClient) -> None:
    added = await client.post("/api/models/add", json={"model": "mistral/large"})
    assert "mistral/large" in added.json()["availableModels"]

    default = await client.post("/api/models/default", json={"model": "mistral/large"})
    assert default.json()["defaultModel"] == "mistral/large"

    assert (await client.post("/api/models/remove", json={"model": "mistral/large"})).status_code == 409
    assert (await client.post("/api/models/remove", json={"model": "nobody/model"})).status_code == 404
    assert (await client.post("/api/models/default", json={"model": "nobody/model"})).status_code == 422


async def test_api_key_is_write_only(client: AsyncClient) -> None:
    response = await client.post("/api/models/api-key", json={"apiKey": "sk-secret"})
    assert response.status_code == 204

    body = (await client.get("/api/models/get")).json()
    assert body["hasApiKey"] is True
    assert "sk-secret" not in str(body)


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------


async def test_run_without_listener(client: AsyncClient, services: Services, runner: FakeProcessRunner) -> None:
    await _create(client)

    response = await client.post("/api/run/daily-report")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Execution queued, waiting for WebSocket connection",
        "needsReconnect": True,
    }
    await services.coordinator.join()
    assert len(runner.invocations) == 2
    assert (services.settings.prompts_dir / "daily-report_prompt_0.md").read_text(encoding="utf-8") == (
        "Summarize yesterday"
    )


async def test_run_with_listener(client: AsyncClient, services: Services) -> None:
    await _create(client)
    channel = listen(services.channels, "daily-report")

    response = await client.post("/api/run/daily-report")

    assert response.json() == {"success": True, "message": "Execution started"}
    await services.coordinator.join()
    assert channel.summary()[-1] == ("end",)


async def test_run_missing_config(client: AsyncClient) -> None:
    response = await client.post("/api/run/nope")
    assert response.status_code == 404


async def test_run_refused_while_shutting_down(client: AsyncClient, services: Services) -> None:
    await _create(client)
    services.registry.begin_shutdown()

    response = await client.post("/api/run/daily-report")
    assert response.status_code == 503


async def test_list_executions(client: AsyncClient, services: Services) -> None:
    config = Configuration(id="c1", name="C1", prompts=["a", "b"])
    services.registry.register(
        Execution(
            execution_id="c1-1-abcd",
            config=config,
            channel_key="c1",
            session_name="maistro-c1",
            prompt_paths=[services.settings.prompts_dir / "c1_prompt_0.md", services.settings.prompts_dir / "c1_prompt_1.md"],
        )
    )

    body = (await client.get("/api/executions/list")).json()

    assert len(body) == 1
    assert body[0]["executionId"] == "c1-1-abcd"
    assert body[0]["configurationId"] == "c1"
    assert body[0]["totalSteps"] == 2
    assert body[0]["stepIndex"] == 0
    assert "parentExecutionId" not in body[0]


async def test_services_unavailable(client: AsyncClient) -> None:
    app.state.services = None
    response = await client.get("/api/configs/list")
    assert response.status_code == 503
