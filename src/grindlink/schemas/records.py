"""Pydantic schemas for assignments and user profiles.

Learn: Pydantic v2 models validate request/response data. "Fields"
models hold what a caller submits; "Read" models add the two values the
server assigns (id, created_at). A Read model is the ONE canonical wire
shape — the create response, the broadcast event, and every element of
the list response are all dumped from it, so clients can merge them
without caring where a record came from.
"""

from datetime import date, datetime, time, timezone
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, Field, PlainSerializer


def utc_now_ms() -> datetime:
    """Current UTC time truncated to whole milliseconds."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def to_iso(value: datetime) -> str:
    """UTC ISO-8601 with millisecond precision, e.g. 2024-05-01T00:00:00.000Z."""
    value = value.astimezone(timezone.utc)
    # %Y is not zero-padded below year 1000 on every platform
    return (
        f"{value.year:04d}-"
        + value.strftime("%m-%dT%H:%M:%S.")
        + f"{value.microsecond // 1000:03d}Z"
    )


def _coerce_date(value: Any) -> Any:
    # A bare calendar date means UTC midnight
    if isinstance(value, str) and len(value) == 10:
        try:
            value = date.fromisoformat(value)
        except ValueError:
            return value
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    return value


def _ensure_utc(value: datetime) -> datetime:
    # Naive date-times are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


Timestamp = Annotated[
    datetime,
    BeforeValidator(_coerce_date),
    AfterValidator(_ensure_utc),
    PlainSerializer(to_iso, return_type=str),
]


# ─── Assignments ────────────────────────────────────────

class AssignmentFields(BaseModel):
    gig_id: int
    assignee_id: int
    due_date: Timestamp
    # in_progress | completed | pending — constrained by the form, not here
    status: str


class AssignmentRead(AssignmentFields):
    id: str
    created_at: Timestamp


# ─── User profiles ──────────────────────────────────────

class UserProfileFields(BaseModel):
    username: str = Field(..., min_length=1)
    bio: str = ""
    skills: list[str] = Field(default_factory=list)


class UserProfileRead(UserProfileFields):
    id: str
    created_at: Timestamp
