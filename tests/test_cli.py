"""CLI tests — click's CliRunner with a mocked HTTP transport."""

import json
from unittest.mock import AsyncMock

import httpx
import pytest
from click.testing import CliRunner

from grindlink.cli import main as cli
from grindlink.client import USERS, LiveList, RecordClient

USER = {
    "id": "u1",
    "username": "ana",
    "bio": "",
    "skills": ["go", "rust"],
    "created_at": "2025-01-01T00:00:00.000Z",
}


@pytest.fixture
def requests_seen(monkeypatch):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.method == "GET" and request.url.path == "/api/users":
            return httpx.Response(200, json=[USER])
        if request.method == "POST" and request.url.path == "/api/users":
            return httpx.Response(201, json={"message": "ok", "user": USER})
        if request.method == "POST" and request.url.path == "/api/assignments":
            return httpx.Response(400, json={"error": "Missing required fields."})
        return httpx.Response(500, json={"error": "Internal server error."})

    def fake_client() -> RecordClient:
        return RecordClient(
            httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
        )

    monkeypatch.setattr(cli, "_client", fake_client)
    return seen


def test_help():
    result = CliRunner().invoke(cli.main, ["--help"])
    assert result.exit_code == 0
    assert "assignments" in result.output
    assert "watch" in result.output


def test_users_list_json(requests_seen):
    result = CliRunner().invoke(cli.main, ["users", "list", "--json"])
    assert result.exit_code == 0
    assert json.loads(result.output) == [USER]


def test_users_list_table(requests_seen):
    result = CliRunner().invoke(cli.main, ["users", "list"])
    assert result.exit_code == 0
    assert "ana" in result.output
    assert "go, rust" in result.output


def test_users_add_sends_split_skills(requests_seen):
    result = CliRunner().invoke(cli.main, ["users", "add", "ana", "--skills", "go, rust"])
    assert result.exit_code == 0
    assert "User profile created successfully!" in result.output
    body = json.loads(requests_seen[0].content)
    assert body["skills"] == ["go", "rust"]


def test_assignments_add_reports_server_error(requests_seen):
    result = CliRunner().invoke(cli.main, ["assignments", "add", "1", "2", "2025-01-31"])
    assert result.exit_code == 1
    assert "Missing required fields." in result.output


def test_assignments_list_server_error(requests_seen):
    result = CliRunner().invoke(cli.main, ["assignments", "list"])
    assert result.exit_code == 1
    assert "Failed to fetch assignments from API." in result.output


def _new_user(id_: str, name: str) -> dict:
    return {"id": id_, "username": name, "bio": "", "skills": ["go"], "created_at": "2025-01-03T00:00:00.000Z"}


@pytest.mark.asyncio
async def test_watch_prints_header_once_for_empty_snapshot(capsys):
    api = AsyncMock(spec=RecordClient)
    api.list.return_value = []
    view = LiveList(api, USERS)
    view.subscribe(cli._WatchPrinter(cli.USER_COLUMNS))

    await view.load()
    view.receive({"type": "new_user", "data": _new_user("u1", "ana")})
    view.receive({"type": "new_user", "data": _new_user("u2", "bo")})

    lines = capsys.readouterr().out.splitlines()
    assert sum(line.startswith("Username") for line in lines) == 1
    pushed = [line for line in lines if line.startswith("+ ")]
    assert len(pushed) == 2
    assert "ana" in pushed[0]
    assert "bo" in pushed[1]


@pytest.mark.asyncio
async def test_watch_prints_only_new_records_after_snapshot(capsys):
    api = AsyncMock(spec=RecordClient)
    api.list.return_value = [_new_user("u1", "ana")]
    view = LiveList(api, USERS)
    view.subscribe(cli._WatchPrinter(cli.USER_COLUMNS))

    await view.load()
    view.receive({"type": "new_user", "data": _new_user("u2", "bo")})

    lines = capsys.readouterr().out.splitlines()
    pushed = [line for line in lines if line.startswith("+ ")]
    assert len(pushed) == 1
    assert "bo" in pushed[0]
