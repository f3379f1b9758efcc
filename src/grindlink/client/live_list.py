"""Live list view — a fetched snapshot kept current by pushed events.

Learn: State machine:

    LOADING ──fetch ok──▶ READY ──event──▶ READY (record prepended)
       └──fetch failed──▶ ERROR

The snapshot is fetched exactly once per LiveList. After that the list
is never re-sorted or re-fetched; each matching event is put at the
front. Events that arrive while the snapshot is still in flight are
held and prepended once it lands, in arrival order.

Duplicates: if a record is both in the snapshot and pushed as an event
(the fetch and the channel connect raced), it shows twice. Pass
dedupe=True to drop pushed records whose id is already listed.
"""

import asyncio
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncIterator, Optional

import httpx
import structlog

from grindlink.client.api import Endpoint, RecordClient
from grindlink.client.observable import Observable
from grindlink.errors import GrindLinkError

logger = structlog.get_logger()


class ViewState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class LiveList(Observable):
    """Newest-first records of one entity type."""

    def __init__(
        self,
        client: RecordClient,
        endpoint: Endpoint,
        dedupe: bool = False,
    ):
        super().__init__()
        self.client = client
        self.endpoint = endpoint
        self.dedupe = dedupe
        self.state = ViewState.LOADING
        self.records: list[dict[str, Any]] = []
        self.error: Optional[str] = None
        self._pending: list[dict[str, Any]] = []
        self._fetched = False

    async def load(self) -> None:
        """Fetch the snapshot. Only the first call does anything."""
        if self._fetched:
            return
        self._fetched = True

        try:
            snapshot = await self.client.list(self.endpoint)
        except GrindLinkError as e:
            self._fail(e.message)
            return
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("live_list.fetch_failed", path=self.endpoint.path, error=str(e))
            self._fail(self.endpoint.list_error)
            return

        self.records = list(snapshot)
        self.state = ViewState.READY
        pending, self._pending = self._pending, []
        for record in pending:
            self._prepend(record)
        self._notify()

    def receive(self, message: dict[str, Any]) -> None:
        """Apply one broadcast frame; frames for other topics are ignored."""
        if message.get("type") != self.endpoint.event:
            return
        record = message.get("data")
        if not isinstance(record, dict):
            return

        if self.state is ViewState.LOADING:
            self._pending.append(record)
        elif self.state is ViewState.READY:
            if self._prepend(record):
                self._notify()

    @asynccontextmanager
    async def mount(self, channel) -> AsyncIterator["LiveList"]:
        """Open a channel session, load the snapshot, stream events.

        The session is released when the block exits, however it exits.
        """
        async with channel.session() as frames:
            pump = asyncio.create_task(self._pump(frames))
            try:
                await self.load()
                yield self
            finally:
                pump.cancel()
                await asyncio.gather(pump, return_exceptions=True)

    async def _pump(self, frames) -> None:
        async for message in frames:
            self.receive(message)

    def _prepend(self, record: dict[str, Any]) -> bool:
        if self.dedupe and any(r.get("id") == record.get("id") for r in self.records):
            return False
        self.records.insert(0, record)
        return True

    def _fail(self, message: str) -> None:
        self.state = ViewState.ERROR
        self.error = message
        self._pending = []
        self._notify()
