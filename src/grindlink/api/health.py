"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and
reports on its two collaborators: the document store and the broadcast
channel. It never fails — a broken dependency shows up as "degraded".
"""

from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from starlette.requests import HTTPConnection

from grindlink import __version__
from grindlink.api.deps import get_broadcaster
from grindlink.errors import StorageError
from grindlink.realtime.pubsub import Broadcaster

router = APIRouter()


@router.get("/health")
async def health_check(
    conn: HTTPConnection,
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    store_init = conn.app.state.store_init
    if not store_init.ok:
        checks["store"] = "not initialized"
    else:
        try:
            await store_init.store.ping()
            checks["store"] = "ok"
        except StorageError as e:
            checks["store"] = f"error: {e}"

    try:
        await broadcaster.ping()
        checks["broadcast"] = "ok"
    except (RedisError, OSError) as e:
        checks["broadcast"] = f"error: {e}"
    checks["broadcast_backend"] = broadcaster.backend

    status = "healthy" if all(
        v == "ok" for k, v in checks.items() if k in ("server", "store", "broadcast")
    ) else "degraded"

    return {"status": status, **checks}
