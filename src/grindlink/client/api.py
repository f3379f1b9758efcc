"""HTTP client for the record endpoints.

Learn: Thin wrapper over httpx.AsyncClient. Any non-2xx response becomes
an ApiError carrying the server's {"error": ...} text when present, or
the endpoint's generic message when the body has none. A 2xx whose body
is not the expected shape is an ApiError with the generic message too.
"""

from dataclasses import dataclass
from typing import Any

import httpx

from grindlink.errors import GrindLinkError
from grindlink.events.types import NEW_ASSIGNMENT, NEW_USER


@dataclass(frozen=True)
class Endpoint:
    path: str
    event: str
    response_key: str
    list_error: str
    create_error: str


ASSIGNMENTS = Endpoint(
    path="/api/assignments",
    event=NEW_ASSIGNMENT,
    response_key="assignment",
    list_error="Failed to fetch assignments from API.",
    create_error="Failed to add assignment.",
)

USERS = Endpoint(
    path="/api/users",
    event=NEW_USER,
    response_key="user",
    list_error="Failed to fetch user profiles from API.",
    create_error="Failed to create user profile.",
)


class ApiError(GrindLinkError):
    """The server answered with an error status or an unreadable body."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


def _error_text(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return fallback


class RecordClient:
    """Create and list records over HTTP."""

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    @classmethod
    def connect(cls, base_url: str, timeout: float = 30.0) -> "RecordClient":
        return cls(httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout))

    async def create(self, endpoint: Endpoint, payload: dict[str, Any]) -> dict:
        r = await self.http.post(endpoint.path, json=payload)
        if r.is_error:
            raise ApiError(_error_text(r, endpoint.create_error), r.status_code)
        try:
            record = r.json()[endpoint.response_key]
        except (ValueError, KeyError, TypeError):
            raise ApiError(endpoint.create_error, r.status_code) from None
        if not isinstance(record, dict):
            raise ApiError(endpoint.create_error, r.status_code)
        return record

    async def list(self, endpoint: Endpoint) -> list[dict]:
        r = await self.http.get(endpoint.path)
        if r.is_error:
            raise ApiError(endpoint.list_error, r.status_code)
        try:
            records = r.json()
        except ValueError:
            raise ApiError(endpoint.list_error, r.status_code) from None
        if not isinstance(records, list):
            raise ApiError(endpoint.list_error, r.status_code)
        return records

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "RecordClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()
