"""Form views — submit one record and report the latest outcome.

Learn: State machine:

    IDLE ──submit──▶ SUBMITTING ──▶ SUCCESS ──edit/submit──▶ IDLE ...
                         └────────▶ FAILED  ──edit/submit──▶ IDLE ...

Starting a submit clears both the success and the error message before
anything else happens. A client-side required-field miss fails without
a network call and looks exactly like a server-side validation failure.
On success every field goes back to its default; on failure the fields
keep what the user typed.
"""

from enum import Enum
from typing import Any, Optional

import httpx
import structlog

from grindlink.client.api import ASSIGNMENTS, USERS, ApiError, Endpoint, RecordClient
from grindlink.client.observable import Observable

logger = structlog.get_logger()


class FormState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


def split_skills(text: str) -> list[str]:
    """Comma-separated input to a list of trimmed skills.

    No de-duplication and no dropping of empties: "go, rust, " gives
    ["go", "rust", ""].
    """
    return [part.strip() for part in text.split(",")]


def parse_int(text: str) -> Optional[int]:
    # Not a number -> null in the payload, which the server rejects
    try:
        return int(text.strip())
    except ValueError:
        return None


class RecordForm(Observable):
    """Base form. Subclasses set the class attributes and build_payload()."""

    endpoint: Endpoint
    defaults: dict[str, str] = {}
    required: tuple[str, ...] = ()
    missing_message = "Please fill in all fields."
    success_message = "Created successfully!"

    def __init__(self, client: RecordClient):
        super().__init__()
        self.client = client
        self.values: dict[str, str] = dict(self.defaults)
        self.state = FormState.IDLE
        self.success: Optional[str] = None
        self.error: Optional[str] = None

    def edit(self, name: str, value: str) -> None:
        if name not in self.defaults:
            raise KeyError(f"Unknown field: {name}")
        self.values[name] = value
        if self.state in (FormState.SUCCESS, FormState.FAILED):
            self.state = FormState.IDLE
            self.success = None
            self.error = None
        self._notify()

    def build_payload(self) -> dict[str, Any]:
        raise NotImplementedError

    async def submit(self) -> Optional[dict]:
        """Returns the created record, or None when the submit failed."""
        self.success = None
        self.error = None
        self.state = FormState.SUBMITTING
        self._notify()

        if any(not self.values.get(name) for name in self.required):
            self._finish_failed(self.missing_message)
            return None

        try:
            record = await self.client.create(self.endpoint, self.build_payload())
        except ApiError as e:
            self._finish_failed(e.message)
            return None
        except httpx.HTTPError as e:
            logger.warning("form.submit_failed", path=self.endpoint.path, error=str(e))
            self._finish_failed(self.endpoint.create_error)
            return None

        self.values = dict(self.defaults)
        self.state = FormState.SUCCESS
        self.success = self.success_message
        self._notify()
        return record

    def _finish_failed(self, message: str) -> None:
        self.state = FormState.FAILED
        self.error = message
        self._notify()


class AssignmentForm(RecordForm):
    endpoint = ASSIGNMENTS
    defaults = {"gig_id": "", "assignee_id": "", "due_date": "", "status": "in_progress"}
    required = ("gig_id", "assignee_id", "due_date", "status")
    missing_message = "Please fill in all fields."
    success_message = "Assignment created successfully!"

    # The status picker only offers these
    STATUSES = ("in_progress", "completed", "pending")

    def edit(self, name: str, value: str) -> None:
        if name == "status" and value not in self.STATUSES:
            raise ValueError(f"Unknown status: {value}")
        super().edit(name, value)

    def build_payload(self) -> dict[str, Any]:
        return {
            "gig_id": parse_int(self.values["gig_id"]),
            "assignee_id": parse_int(self.values["assignee_id"]),
            "due_date": self.values["due_date"],
            "status": self.values["status"],
        }


class UserProfileForm(RecordForm):
    endpoint = USERS
    defaults = {"username": "", "bio": "", "skills": ""}
    required = ("username",)
    missing_message = "Username is required."
    success_message = "User profile created successfully!"

    def build_payload(self) -> dict[str, Any]:
        return {
            "username": self.values["username"],
            "bio": self.values["bio"],
            "skills": split_skills(self.values["skills"]),
        }
