"""Entity registry — everything that differs between assignments and users.

Learn: The Record Service is generic. Each entity type is a small
descriptor naming its collection, its broadcast topic, its wire model,
and the messages clients display. Adding a third entity means adding
one descriptor here, not another service.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from grindlink.errors import StorageError, ValidationError
from grindlink.events.types import NEW_ASSIGNMENT, NEW_USER
from grindlink.schemas.records import (
    AssignmentFields,
    AssignmentRead,
    UserProfileFields,
    UserProfileRead,
)


@dataclass(frozen=True)
class EntityType:
    name: str
    collection: str
    event: str
    response_key: str
    fields_model: type[BaseModel]
    read_model: type[BaseModel]
    required: tuple[str, ...]
    missing_message: str
    created_message: str
    # Applied when the caller sends the field as null/empty/absent
    defaults: dict[str, Any] = field(default_factory=dict)

    def validate(self, payload: Any) -> BaseModel:
        """Check required fields, apply defaults, coerce types.

        Required fields must be present AND truthy — a gig_id of 0 or an
        empty username counts as missing.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object.")
        if any(not payload.get(name) for name in self.required):
            raise ValidationError(self.missing_message)

        values = {name: payload.get(name) for name in self.fields_model.model_fields}
        for name, default in self.defaults.items():
            if not values.get(name):
                values[name] = default() if callable(default) else default

        try:
            return self.fields_model.model_validate(values)
        except PydanticValidationError as e:
            bad = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
            raise ValidationError(f"Invalid value for: {bad}.") from e

    def build(self, record_id: str, created_at, fields: dict) -> dict:
        """Canonical JSON-mode record: submitted fields + id + created_at.

        Stored data that no longer fits the read model is a storage fault,
        not a caller mistake.
        """
        try:
            record = self.read_model.model_validate(
                {**fields, "id": record_id, "created_at": created_at}
            )
        except PydanticValidationError as e:
            raise StorageError() from e
        return record.model_dump(mode="json")


ASSIGNMENTS = EntityType(
    name="assignment",
    collection="assignments",
    event=NEW_ASSIGNMENT,
    response_key="assignment",
    fields_model=AssignmentFields,
    read_model=AssignmentRead,
    required=("gig_id", "assignee_id", "due_date", "status"),
    missing_message="Missing required fields.",
    created_message="Assignment added successfully",
)

USERS = EntityType(
    name="user",
    collection="users",
    event=NEW_USER,
    response_key="user",
    fields_model=UserProfileFields,
    read_model=UserProfileRead,
    required=("username",),
    missing_message="Username is a required field.",
    created_message="User profile created successfully",
    defaults={"bio": "", "skills": list},
)
