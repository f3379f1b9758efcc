"""Client live-list tests.

Learn: Unit tests drive LiveList with a mocked RecordClient and an
in-memory channel; the last test runs it end to end against the real
app, with a form submitting through the same HTTP client.
"""

from unittest.mock import AsyncMock

import httpx
import pytest

from grindlink.client import (
    ASSIGNMENTS,
    USERS,
    LiveList,
    RecordClient,
    UserProfileForm,
    ViewState,
)
from grindlink.client.api import ApiError

from conftest import BroadcasterChannel, QueueChannel, wait_until


def _user(id_: str, name: str, created_at: str) -> dict:
    return {"id": id_, "username": name, "bio": "", "skills": [], "created_at": created_at}


OLD = _user("u1", "old", "2025-01-01T00:00:00.000Z")
MID = _user("u2", "mid", "2025-01-02T00:00:00.000Z")
NEW = _user("u3", "new", "2025-01-03T00:00:00.000Z")


@pytest.fixture
def api():
    client = AsyncMock(spec=RecordClient)
    client.list.return_value = [MID, OLD]
    return client


# ═══════════════════════════════════════════════════════════
# State machine
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_starts_loading_then_ready(api):
    view = LiveList(api, USERS)
    assert view.state is ViewState.LOADING
    await view.load()
    assert view.state is ViewState.READY
    assert view.records == [MID, OLD]
    api.list.assert_awaited_once_with(USERS)


@pytest.mark.asyncio
async def test_fetch_happens_once(api):
    view = LiveList(api, USERS)
    await view.load()
    await view.load()
    assert api.list.await_count == 1


@pytest.mark.asyncio
async def test_fetch_failure_enters_error(api):
    api.list.side_effect = ApiError("Failed to fetch user profiles from API.", 500)
    view = LiveList(api, USERS)
    await view.load()
    assert view.state is ViewState.ERROR
    assert view.error == "Failed to fetch user profiles from API."


@pytest.mark.asyncio
async def test_network_failure_enters_error_with_generic_message(api):
    api.list.side_effect = httpx.ConnectError("refused")
    view = LiveList(api, ASSIGNMENTS)
    await view.load()
    assert view.state is ViewState.ERROR
    assert view.error == "Failed to fetch assignments from API."


@pytest.mark.asyncio
async def test_unreadable_snapshot_enters_error_with_generic_message():
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html>oops</html>")),
        base_url="http://test",
    )
    async with RecordClient(http) as api:
        view = LiveList(api, USERS)
        await view.load()
    assert view.state is ViewState.ERROR
    assert view.error == "Failed to fetch user profiles from API."


@pytest.mark.asyncio
async def test_decode_error_from_client_enters_error(api):
    api.list.side_effect = ValueError("Expecting value")
    view = LiveList(api, ASSIGNMENTS)
    await view.load()
    assert view.state is ViewState.ERROR
    assert view.error == "Failed to fetch assignments from API."


@pytest.mark.asyncio
async def test_event_is_prepended_without_resorting(api):
    view = LiveList(api, USERS)
    await view.load()
    view.receive({"type": "new_user", "data": NEW})
    assert view.records == [NEW, MID, OLD]

    # Out-of-order arrival is shown in arrival order, not re-sorted
    older = _user("u0", "older", "2024-12-31T00:00:00.000Z")
    view.receive({"type": "new_user", "data": older})
    assert view.records[0] == older


@pytest.mark.asyncio
async def test_other_topics_are_ignored(api):
    view = LiveList(api, USERS)
    await view.load()
    view.receive({"type": "new_assignment", "data": {"id": "a1"}})
    assert view.records == [MID, OLD]


@pytest.mark.asyncio
async def test_events_during_loading_are_applied_after_snapshot(api):
    view = LiveList(api, USERS)
    view.receive({"type": "new_user", "data": NEW})
    assert view.records == []
    await view.load()
    assert view.records == [NEW, MID, OLD]


@pytest.mark.asyncio
async def test_race_duplicate_is_shown_twice_by_default(api):
    """A record in both the snapshot and an event appears twice."""
    view = LiveList(api, USERS)
    await view.load()
    view.receive({"type": "new_user", "data": MID})
    assert [r["id"] for r in view.records] == ["u2", "u2", "u1"]


@pytest.mark.asyncio
async def test_dedupe_drops_records_already_listed(api):
    view = LiveList(api, USERS, dedupe=True)
    view.receive({"type": "new_user", "data": MID})
    await view.load()
    view.receive({"type": "new_user", "data": MID})
    assert [r["id"] for r in view.records] == ["u2", "u1"]


@pytest.mark.asyncio
async def test_observers_notified_and_unsubscribed(api):
    view = LiveList(api, USERS)
    seen = []
    unsubscribe = view.subscribe(lambda v: seen.append((v.state, len(v.records))))
    await view.load()
    view.receive({"type": "new_user", "data": NEW})
    unsubscribe()
    view.receive({"type": "new_user", "data": _user("u4", "x", "2025-01-04T00:00:00.000Z")})
    assert seen == [(ViewState.READY, 2), (ViewState.READY, 3)]


# ═══════════════════════════════════════════════════════════
# Mount / channel session
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_mount_streams_events_and_releases_session(api):
    channel = QueueChannel()
    view = LiveList(api, USERS)

    async with view.mount(channel):
        assert channel.is_open
        assert view.state is ViewState.READY
        channel.queue.put_nowait({"type": "new_user", "data": NEW})
        await wait_until(lambda: len(view.records) == 3)

    assert not channel.is_open
    assert view.records[0] == NEW
    assert channel.sessions == 1


@pytest.mark.asyncio
async def test_mount_releases_session_on_error(api):
    channel = QueueChannel()
    view = LiveList(api, USERS)
    with pytest.raises(RuntimeError):
        async with view.mount(channel):
            raise RuntimeError("view torn down")
    assert not channel.is_open


# ═══════════════════════════════════════════════════════════
# End to end against the app
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_live_list_shows_form_submission_once(app, client):
    records = RecordClient(client)
    await records.create(USERS, {"username": "before"})

    view = LiveList(records, USERS)
    async with view.mount(BroadcasterChannel(app.state.broadcaster)):
        assert [r["username"] for r in view.records] == ["before"]

        form = UserProfileForm(records)
        form.edit("username", "ana")
        form.edit("skills", "go, rust")
        created = await form.submit()
        await wait_until(lambda: len(view.records) == 2)

    assert view.records[0] == created
    assert view.records == await records.list(USERS)
    assert app.state.broadcaster.subscriber_count == 0
