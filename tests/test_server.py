"""Tests for the board HTTP and WebSocket server."""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import Future

import pytest
from fastapi.testclient import TestClient
from loguru import logger

from stage_board.board import BoardStore, CreateTask
from stage_board.board.server import BoardServer


@pytest.fixture
def server():
    server = BoardServer(store=BoardStore(["Backlog", "To Do", "Done"], ["1", "2"]))
    yield server
    server.stop()


@pytest.fixture
def client(server):
    with TestClient(server.app) as client:
        yield client


def _create(client, name):
    return client.post(
        "/api/commands", json={"type": "CREATE_TASK", "payload": {"name": name}}
    )


def test_get_board(client):
    response = client.get("/api/board")
    assert response.status_code == 200
    data = response.json()
    assert data["stages"] == ["Backlog", "To Do", "Done"]
    assert [task["name"] for task in data["tasks"]] == ["1", "2"]


def test_post_commands(client, server):
    """Test creating and moving a task through the HTTP API."""
    response = _create(client, "Write spec")
    assert response.status_code == 200
    task = response.json()["tasks"][-1]
    assert task["name"] == "Write spec"
    assert task["stage"] == 0

    response = client.post(
        "/api/commands",
        json={"type": "MOVE_FORWARD", "payload": {"task_id": task["id"]}},
    )
    assert response.status_code == 200
    assert response.json()["columns"][1]["tasks"][0]["id"] == task["id"]
    assert server.store.state.find_task(task["id"]).stage == 1


def test_invalid_input_is_422(client, server):
    before = server.store.state
    response = _create(client, "")
    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "InvalidInput"
    assert len(body["board"]["tasks"]) == 2
    assert server.store.state is before


def test_unknown_command_type_is_422(client):
    response = client.post("/api/commands", json={"type": "JUMP", "payload": {}})
    assert response.status_code == 422
    assert response.json()["error"] == "InvalidInput"


def test_not_found_is_404(client):
    response = client.post(
        "/api/commands",
        json={"type": "DELETE_TASK", "payload": {"task_id": "task-404"}},
    )
    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "NotFound"
    assert "task-404" in body["detail"]


def test_websocket_streams_updates(client):
    """Test that WebSocket clients get the board on connect and on change."""
    with client.websocket_connect("/ws") as websocket:
        initial = websocket.receive_json()
        assert len(initial["tasks"]) == 2

        _create(client, "3")
        update = websocket.receive_json()
        assert [task["name"] for task in update["tasks"]] == ["1", "2", "3"]


def _move(client, kind, task_id):
    return client.post("/api/commands", json={"type": kind, "payload": {"task_id": task_id}})


@pytest.mark.parametrize("body", [[], ["CREATE_TASK"], "CREATE_TASK", 3])
def test_non_object_body_is_invalid_input(client, body):
    response = client.post("/api/commands", json=body)
    assert response.status_code == 422
    data = response.json()
    assert data["error"] == "InvalidInput"
    assert len(data["board"]["tasks"]) == 2


def test_non_string_command_type_is_invalid_input(client):
    response = client.post("/api/commands", json={"type": [], "payload": {}})
    assert response.status_code == 422
    assert response.json()["error"] == "InvalidInput"


def test_boundary_moves_are_not_broadcast(client):
    """Test that no-op moves answer 200 without pushing a WebSocket update."""
    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()

        for _ in range(2):
            assert _move(client, "MOVE_FORWARD", "task-1").status_code == 200
            websocket.receive_json()

        response = _move(client, "MOVE_FORWARD", "task-1")
        assert response.status_code == 200
        assert response.json()["tasks"][0]["stage"] == 2
        assert _move(client, "MOVE_BACK", "task-2").status_code == 200

        _create(client, "3")
        update = websocket.receive_json()
        assert [task["name"] for task in update["tasks"]] == ["1", "2", "3"]


class _BrokenConnection:
    async def send_json(self, data):
        raise ValueError("cannot encode")


@pytest.fixture
def error_messages():
    messages: list[str] = []
    received = threading.Event()

    def sink(message):
        messages.append(str(message))
        received.set()

    handler_id = logger.add(sink, level="ERROR")
    yield messages, received
    logger.remove(handler_id)


def test_broadcast_failure_is_logged(server, error_messages):
    """Test that an unexpected broadcast error is logged rather than lost."""
    messages, received = error_messages
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()
    try:
        server._loop = loop
        server.active_connections.append(_BrokenConnection())

        server.store.dispatch(CreateTask("boom"))

        assert received.wait(timeout=5)
        assert any("Board broadcast failed" in message for message in messages)
        assert any("cannot encode" in message for message in messages)
    finally:
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout=5)
        loop.close()


def test_broadcast_failure_callback_ignores_success(error_messages):
    messages, _ = error_messages
    done: Future = Future()
    done.set_result(None)
    BoardServer._log_broadcast_failure(done)
    assert messages == []

    failed: Future = Future()
    failed.set_exception(RuntimeError("socket gone"))
    BoardServer._log_broadcast_failure(failed)
    assert len(messages) == 1
    assert "socket gone" in messages[0]
