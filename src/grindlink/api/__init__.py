"""API route aggregation.

All routers registered here get mounted in main.py under /api.
There is no auth layer: any caller may create or list records.
"""

from fastapi import APIRouter

from grindlink.api.health import router as health_router
from grindlink.api.records import router as records_router

api_router = APIRouter(prefix="/api")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(records_router, tags=["assignments", "users"])
