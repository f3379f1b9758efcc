"""Record service — create-and-broadcast plus newest-first listing.

Learn: Service layer separates business logic from HTTP routing. One
RecordService instance serves one entity type; routes build it per
request from the injected store and broadcaster.

create() is strictly ordered:
  validate → store write (committed) → build canonical record → publish
A validation or storage failure stops the chain before the publish, so
a client that receives an event can always find the record via list().
"""

import structlog

from grindlink.config import Settings
from grindlink.db.store import DocumentStore
from grindlink.errors import StorageError
from grindlink.realtime.pubsub import Broadcaster
from grindlink.schemas.records import utc_now_ms
from grindlink.services.entities import EntityType

logger = structlog.get_logger()


class RecordService:
    """Business logic for one entity type."""

    def __init__(
        self,
        store: DocumentStore,
        broadcaster: Broadcaster,
        entity: EntityType,
        settings: Settings,
    ):
        self.store = store
        self.broadcaster = broadcaster
        self.entity = entity
        self.collection = settings.collection_path(entity.collection)

    async def create(self, payload) -> dict:
        """Validate, persist, broadcast. Returns the canonical record."""
        fields = self.entity.validate(payload)
        created_at = utc_now_ms()
        data = fields.model_dump(mode="json")

        try:
            record_id = await self.store.add(self.collection, data, created_at)
            record = self.entity.build(record_id, created_at, data)
        except StorageError as e:
            logger.error(
                "records.create_failed",
                entity=self.entity.name,
                error=str(e.__cause__ or e),
            )
            raise

        await self.broadcaster.publish(self.entity.event, record)
        logger.info("records.created", entity=self.entity.name, record_id=record_id)
        return record

    async def list(self) -> list[dict]:
        """Every record of this type, newest created_at first."""
        try:
            docs = await self.store.list(self.collection)
            records = [self.entity.build(d.id, d.created_at, d.data) for d in docs]
        except StorageError as e:
            logger.error(
                "records.list_failed",
                entity=self.entity.name,
                error=str(e.__cause__ or e),
            )
            raise
        return records
