"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. The lifespan builds the two collaborators once at startup and
hangs them on app.state:

- app.state.store_init   StoreInit (ready DocumentStore, or the failure)
- app.state.broadcaster  Broadcaster (Redis, or in-process)

A store that fails to initialize does NOT stop the server: static assets
and /api/health keep working, and every data route answers 500.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from grindlink import __version__
from grindlink.api import api_router
from grindlink.config import Settings, settings as default_settings
from grindlink.db.engine import init_store
from grindlink.errors import GrindLinkError
from grindlink.realtime.pubsub import init_broadcaster

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    settings: Settings = app.state.settings
    logger.info(
        "grindlink.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        app_id=settings.app_id,
    )

    app.state.store_init = await init_store(settings)
    app.state.broadcaster = await init_broadcaster(settings)

    yield

    logger.info("grindlink.shutdown")
    await app.state.broadcaster.close()
    if app.state.store_init.ok:
        await app.state.store_init.store.close()


async def grindlink_error_handler(request: Request, exc: GrindLinkError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Unparseable JSON bodies
    return JSONResponse(status_code=400, content={"error": "Invalid JSON body."})


def mount_frontend(app: FastAPI, static_dir: str) -> None:
    """Serve the built front-end, falling back to index.html for client routes."""
    root = Path(static_dir)
    index = root / "index.html"

    @app.get("/{path:path}", include_in_schema=False)
    async def frontend(path: str):
        if path.startswith("api/"):
            return JSONResponse(status_code=404, content={"error": "Not found."})
        candidate = (root / path).resolve()
        if path and candidate.is_file() and root.resolve() in candidate.parents:
            return FileResponse(candidate)
        return FileResponse(index)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="GrindLink Hub",
        description="Live assignment and user-profile boards",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings or default_settings

    from grindlink.middleware.request_id import RequestIdMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app.state.settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.add_exception_handler(GrindLinkError, grindlink_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(api_router)

    from grindlink.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    # Catch-all route — must be registered last
    if app.state.settings.static_dir:
        mount_frontend(app, app.state.settings.static_dir)

    return app


# Default app instance (used by uvicorn: grindlink.main:app)
app = create_app()
