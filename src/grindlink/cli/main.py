"""GrindLink CLI — run the server, add and list records, watch live boards.

Usage:
    grindlink serve                                   # Run the API + WebSocket server
    grindlink assignments list                        # Newest first
    grindlink assignments add 12 7 2025-01-31         # gig, assignee, due date
    grindlink users list
    grindlink users add ana --bio "..." --skills "go, rust"
    grindlink watch users                             # Snapshot, then live prepends
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from grindlink.client import (
    ASSIGNMENTS,
    USERS,
    AssignmentForm,
    LiveList,
    RecordClient,
    UserProfileForm,
    ViewState,
    WebSocketChannel,
    ws_url,
)
from grindlink.client.api import ApiError, Endpoint

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:4000"

ENDPOINTS = {"assignments": ASSIGNMENTS, "users": USERS}

ASSIGNMENT_COLUMNS = [
    ("Gig", "gig_id", 8),
    ("Assignee", "assignee_id", 10),
    ("Status", "status", 12),
    ("Due", "due_date", 26),
    ("Created", "created_at", 26),
]

USER_COLUMNS = [
    ("Username", "username", 20),
    ("Skills", "skills", 30),
    ("Bio", "bio", 30),
    ("Created", "created_at", 26),
]


def _api_url() -> str:
    return os.environ.get("GRINDLINK_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> RecordClient:
    return RecordClient.connect(_api_url())


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _row(record: dict) -> dict:
    row = dict(record)
    if isinstance(row.get("skills"), list):
        row["skills"] = ", ".join(row["skills"])
    return row


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _status_color(status: str) -> str:
    colors = {
        "in_progress": "yellow",
        "completed": "green",
        "pending": "cyan",
    }
    return colors.get(status, "white")


def _columns(endpoint: Endpoint) -> list[tuple[str, str, int]]:
    return ASSIGNMENT_COLUMNS if endpoint is ASSIGNMENTS else USER_COLUMNS


async def _list_impl(endpoint: Endpoint, as_json: bool):
    async with _client() as c:
        try:
            records = await c.list(endpoint)
        except ApiError as e:
            click.secho(f"Error: {e.message}", fg="red", err=True)
            sys.exit(1)
        except httpx.HTTPError as e:
            click.secho(f"Error: {endpoint.list_error} ({e})", fg="red", err=True)
            sys.exit(1)

    if as_json:
        click.echo(json.dumps(records, indent=2))
        return
    if not records:
        click.echo("No records found.")
        return
    _print_table([_row(r) for r in records], _columns(endpoint))


async def _submit(form) -> None:
    async with form.client:
        record = await form.submit()
    if record is None:
        click.secho(form.error, fg="red", err=True)
        sys.exit(1)
    click.secho(form.success, fg="green")
    click.echo(json.dumps(record, indent=2))


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="grindlink")
def main():
    """GrindLink Hub — live assignment and user-profile boards."""


@main.command()
@click.option("--host", default=None, help="Bind address (default from GRINDLINK_HOST)")
@click.option("--port", type=int, default=None, help="Port (default from GRINDLINK_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API and WebSocket server."""
    import uvicorn

    from grindlink.config import settings

    uvicorn.run(
        "grindlink.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# grindlink assignments
# ---------------------------------------------------------------------------


@main.group()
def assignments():
    """List and add assignments."""


@assignments.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def assignments_list(as_json: bool):
    """List assignments, newest first."""
    _run(_list_impl(ASSIGNMENTS, as_json))


@assignments.command("add")
@click.argument("gig_id")
@click.argument("assignee_id")
@click.argument("due_date")
@click.option(
    "--status",
    type=click.Choice(AssignmentForm.STATUSES),
    default="in_progress",
    show_default=True,
)
def assignments_add(gig_id: str, assignee_id: str, due_date: str, status: str):
    """Create an assignment. DUE_DATE is YYYY-MM-DD."""
    form = AssignmentForm(_client())
    form.edit("gig_id", gig_id)
    form.edit("assignee_id", assignee_id)
    form.edit("due_date", due_date)
    form.edit("status", status)
    _run(_submit(form))


# ---------------------------------------------------------------------------
# grindlink users
# ---------------------------------------------------------------------------


@main.group()
def users():
    """List and add user profiles."""


@users.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def users_list(as_json: bool):
    """List user profiles, newest first."""
    _run(_list_impl(USERS, as_json))


@users.command("add")
@click.argument("username")
@click.option("--bio", default="", help="Free-text bio")
@click.option("--skills", default="", help='Comma-separated, e.g. "go, rust"')
def users_add(username: str, bio: str, skills: str):
    """Create a user profile."""
    form = UserProfileForm(_client())
    form.edit("username", username)
    form.edit("bio", bio)
    form.edit("skills", skills)
    _run(_submit(form))


# ---------------------------------------------------------------------------
# grindlink watch
# ---------------------------------------------------------------------------


@main.command()
@click.argument("entity", type=click.Choice(sorted(ENDPOINTS)))
@click.option("--dedupe", is_flag=True, help="Hide pushed records already listed")
def watch(entity: str, dedupe: bool):
    """Print the current list, then every newly created record as it arrives."""
    try:
        _run(_watch_impl(ENDPOINTS[entity], dedupe))
    except KeyboardInterrupt:
        click.echo()


class _WatchPrinter:
    """Observer that prints a LiveList: the snapshot once, then `+ ` lines."""

    def __init__(self, columns: list[tuple[str, str, int]]):
        self.columns = columns
        self.printed = 0
        self.started = False

    def __call__(self, view: LiveList) -> None:
        if view.state is ViewState.ERROR:
            click.secho(f"Error: {view.error}", fg="red", err=True)
            return
        if view.state is not ViewState.READY:
            return
        if not self.started:
            _print_table([_row(r) for r in view.records], self.columns)
            self.started = True
        else:
            # Everything past the old length was prepended since last render
            for record in view.records[: len(view.records) - self.printed]:
                line = "  ".join(
                    str(_row(record).get(k, "—"))[:w].ljust(w) for _, k, w in self.columns
                )
                color = _status_color(record.get("status", ""))
                click.secho(f"+ {line}", fg=color)
        self.printed = len(view.records)


async def _watch_impl(endpoint: Endpoint, dedupe: bool):
    async with _client() as c:
        view = LiveList(c, endpoint, dedupe=dedupe)
        view.subscribe(_WatchPrinter(_columns(endpoint)))
        async with view.mount(WebSocketChannel(ws_url(_api_url()))):
            if view.state is ViewState.ERROR:
                sys.exit(1)
            if not view.records:
                click.echo("No records yet — waiting for new ones...")
            await asyncio.Event().wait()
