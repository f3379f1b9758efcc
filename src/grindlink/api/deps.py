"""FastAPI dependencies — the store, broadcaster and settings per request.

Learn: Nothing here is a module global. The lifespan in main.py puts a
StoreInit, a Broadcaster and the Settings on app.state; these functions
read them back. HTTPConnection works for both HTTP and WebSocket routes,
and tests can swap any of them via app.dependency_overrides.
"""

from fastapi import Depends
from starlette.requests import HTTPConnection

from grindlink.config import Settings
from grindlink.db.store import DocumentStore
from grindlink.realtime.pubsub import Broadcaster
from grindlink.services.entities import ASSIGNMENTS, USERS, EntityType
from grindlink.services.record_service import RecordService


def get_settings(conn: HTTPConnection) -> Settings:
    return conn.app.state.settings


def get_store(conn: HTTPConnection) -> DocumentStore:
    """The ready store, or InitializationError if startup failed."""
    return conn.app.state.store_init.require()


def get_broadcaster(conn: HTTPConnection) -> Broadcaster:
    return conn.app.state.broadcaster


def _service_for(entity: EntityType):
    def factory(
        store: DocumentStore = Depends(get_store),
        broadcaster: Broadcaster = Depends(get_broadcaster),
        settings: Settings = Depends(get_settings),
    ) -> RecordService:
        return RecordService(store, broadcaster, entity, settings)

    return factory


assignment_service = _service_for(ASSIGNMENTS)
user_service = _service_for(USERS)
