"""End-to-end: full app lifespan, real subprocess, live WebSocket."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from starlette.testclient import WebSocketTestSession

from maistro.server.app import app
from maistro.server.settings import MaistroSettings

pytestmark = pytest.mark.integration


def _drain(ws: WebSocketTestSession) -> list[dict]:
    events: list[dict] = []
    while True:
        event = ws.receive_json()
        events.append(event)
        if event["type"] in ("end", "error"):
            return events


def test_run_streams_over_websocket(settings_env: MaistroSettings) -> None:
    with TestClient(app) as client:
        created = client.post("/api/configs/create", json={"id": "c1", "name": "Echo", "prompts": ["one", "two"]})
        assert created.status_code == 201

        with client.websocket_connect("/ws/execution/c1") as ws:
            assert ws.receive_json() == {
                "type": "connection",
                "message": "WebSocket connection established for configuration c1",
            }

            ws.send_json({"type": "heartbeat"})
            ack = ws.receive_json()
            assert ack["type"] == "heartbeat_ack"
            assert isinstance(ack["timestamp"], int)

            response = client.post("/api/run/c1")
            assert response.json() == {"success": True, "message": "Execution started"}

            events = _drain(ws)

    kinds = [e["type"] for e in events if e["type"] != "output"]
    assert kinds == ["start", "complete", "start", "complete", "end"]

    output = "".join(e["content"] for e in events if e["type"] == "output")
    prompt_0 = settings_env.prompts_dir / "c1_prompt_0.md"
    prompt_1 = settings_env.prompts_dir / "c1_prompt_1.md"
    assert f"agent args: run --name maistro-c1 --instructions {prompt_0}" in output
    assert f"agent args: run --resume --name maistro-c1 --instructions {prompt_1}" in output
    # No API key is configured, so the model switch warns and the run continues.
    assert "Continuing with the current model." in output


def test_failing_agent_reports_error(settings_env: MaistroSettings, fake_agent: Path) -> None:
    fake_agent.write_text("#!/bin/sh\necho boom >&2\nexit 2\n", encoding="utf-8")

    with TestClient(app) as client:
        client.post("/api/configs/create", json={"id": "c1", "name": "Broken", "prompts": ["one", "two"]})

        with client.websocket_connect("/ws/execution/c1") as ws:
            ws.receive_json()
            client.post("/api/run/c1")
            events = _drain(ws)

    assert [e["type"] for e in events if e["type"] != "output"] == ["start", "error"]
    assert events[-1]["message"] == "Error executing prompt 1: Command exited with code 2. Error output: boom\n"


def test_ignores_non_json_messages(settings_env: MaistroSettings) -> None:
    with TestClient(app) as client, client.websocket_connect("/ws/execution/c1") as ws:
        ws.receive_json()
        ws.send_text("not json")
        ws.send_json({"type": "heartbeat"})
        assert ws.receive_json()["type"] == "heartbeat_ack"
