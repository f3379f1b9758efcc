"""Test fixtures — a fresh app, store and broadcaster per test.

Learn: Each test gets its own SQLite file (via aiosqlite) and the
in-process broadcast backend, so tests need neither PostgreSQL nor
Redis and never see each other's data.

The app lifespan is entered explicitly: httpx's ASGITransport does not
run it, and the lifespan is what builds app.state.store_init and
app.state.broadcaster.
"""

import asyncio
from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from grindlink.config import Settings
from grindlink.main import create_app


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'grindlink.db'}",
        broadcast_backend="memory",
        app_id="test-app",
    )


@pytest_asyncio.fixture()
async def app(settings):
    """App with its lifespan running (store + broadcaster ready)."""
    app = create_app(settings)
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def events(app):
    """A subscriber attached to the app's broadcaster before the test runs."""
    async with app.state.broadcaster.subscribe() as sub:
        yield sub


async def next_event(sub, timeout: float = 1.0) -> dict:
    return await asyncio.wait_for(sub.get(), timeout)


async def wait_until(predicate, timeout: float = 1.0) -> None:
    """Yield to the loop until predicate() holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


class QueueChannel:
    """In-memory stand-in for WebSocketChannel — tests push frames in."""

    def __init__(self):
        self.queue: asyncio.Queue = asyncio.Queue()
        self.is_open = False
        self.sessions = 0

    @asynccontextmanager
    async def session(self):
        self.is_open = True
        self.sessions += 1
        try:
            yield self._frames()
        finally:
            self.is_open = False

    async def _frames(self):
        while True:
            yield await self.queue.get()


class BroadcasterChannel:
    """Channel whose sessions are subscriptions on a live Broadcaster."""

    def __init__(self, broadcaster):
        self.broadcaster = broadcaster

    @asynccontextmanager
    async def session(self):
        async with self.broadcaster.subscribe() as sub:
            yield sub
