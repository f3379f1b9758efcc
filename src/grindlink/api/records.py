"""Assignment and user-profile API routes.

Learn: Routes handle HTTP concerns (status codes, response envelope),
the RecordService handles the rest. Errors are raised, not returned —
the handler registered in main.py renders them as {"error": message}.

The body is taken as raw JSON rather than a Pydantic model so that a
missing field is a 400 with the contract message, not FastAPI's 422.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from grindlink.api.deps import assignment_service, user_service
from grindlink.services.entities import ASSIGNMENTS, USERS
from grindlink.services.record_service import RecordService

router = APIRouter()


# ─── Assignments ────────────────────────────────────────

@router.post("/assignments", status_code=201)
async def create_assignment(
    payload: Any = Body(None),
    svc: RecordService = Depends(assignment_service),
):
    record = await svc.create(payload)
    return {"message": ASSIGNMENTS.created_message, ASSIGNMENTS.response_key: record}


@router.get("/assignments")
async def list_assignments(svc: RecordService = Depends(assignment_service)):
    return await svc.list()


# ─── User profiles ──────────────────────────────────────

@router.post("/users", status_code=201)
async def create_user(
    payload: Any = Body(None),
    svc: RecordService = Depends(user_service),
):
    record = await svc.create(payload)
    return {"message": USERS.created_message, USERS.response_key: record}


@router.get("/users")
async def list_users(svc: RecordService = Depends(user_service)):
    return await svc.list()
