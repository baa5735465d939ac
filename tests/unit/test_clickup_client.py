"""Unit tests for ClickUpClient against a mocked HTTP transport."""

import json

import httpx
import pytest

from opsdash_server.errors import ConfigurationError, ConnectivityError, UpstreamError
from opsdash_server.integrations.clickup import ClickUpClient

PREFIX = "/api/v2"


def make_client(handler, token="pk_test", space_id="space-1"):
    return ClickUpClient(token, space_id, transport=httpx.MockTransport(handler))


def space_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path.removeprefix(PREFIX)
    if path == "/space/space-1/list":
        return httpx.Response(200, json={"lists": [{"id": "l1", "name": "Inbox"}]})
    if path == "/space/space-1/folder":
        return httpx.Response(200, json={"folders": [{"id": "f1", "name": "Clients"}]})
    if path == "/folder/f1/list":
        return httpx.Response(200, json={"lists": [{"id": "l2", "name": "Acme"}]})
    if path == "/list/l1/task":
        return httpx.Response(200, json={"tasks": [{"id": "t1", "name": "Triage"}]})
    if path == "/list/l2/task":
        return httpx.Response(500, json={"err": "Internal error"})
    return httpx.Response(404, json={"err": "Route not found"})


@pytest.mark.asyncio
async def test_get_lists_includes_folder_lists():
    client = make_client(space_handler)

    lists = await client.get_lists()

    assert [(item["id"], item["name"]) for item in lists] == [
        ("l1", "Inbox"),
        ("l2", "Clients > Acme"),
    ]


@pytest.mark.asyncio
async def test_get_tasks_skips_failing_list():
    client = make_client(space_handler)

    tasks = await client.get_tasks()

    assert tasks == [{"id": "t1", "name": "Triage"}]


@pytest.mark.asyncio
async def test_get_tasks_for_one_list_sends_filters():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"tasks": []})

    client = make_client(handler)

    assert await client.get_tasks("l9") == []
    assert seen["params"] == {"subtasks": "true", "include_closed": "false"}
    assert seen["auth"] == "pk_test"


@pytest.mark.asyncio
async def test_create_task_payload():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "t5", "name": "Launch"})

    client = make_client(handler)

    task = await client.create_task("l1", "Launch", due_date=1775001600000, priority=2)

    assert task["id"] == "t5"
    assert captured["path"] == f"{PREFIX}/list/l1/task"
    assert captured["body"] == {"name": "Launch", "due_date": 1775001600000, "priority": 2}


@pytest.mark.asyncio
async def test_error_body_is_reported():
    client = make_client(lambda request: httpx.Response(401, json={"err": "Token invalid"}))

    with pytest.raises(UpstreamError) as exc_info:
        await client.get_tasks("l1")

    assert str(exc_info.value) == "ClickUp: Token invalid"


@pytest.mark.asyncio
async def test_transport_failure_is_connectivity_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)

    with pytest.raises(ConnectivityError):
        await client.get_tasks("l1")


@pytest.mark.asyncio
async def test_missing_credentials():
    client = make_client(space_handler, token=None)

    with pytest.raises(ConfigurationError):
        await client.get_lists()
    assert await client.check_connection() is False


@pytest.mark.asyncio
async def test_missing_space():
    client = make_client(space_handler, space_id=None)

    with pytest.raises(ConfigurationError):
        await client.get_tasks()


@pytest.mark.asyncio
async def test_check_connection():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == f"{PREFIX}/user"
        return httpx.Response(200, json={"user": {"id": 1}})

    assert await make_client(handler).check_connection() is True
