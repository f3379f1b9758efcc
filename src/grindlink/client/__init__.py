"""Python client for GrindLink Hub.

Learn: The client mirrors the two browser views:
- LiveList   — snapshot via GET, then prepend every pushed record
- RecordForm — collect fields, POST, report the latest outcome

Both are Observables: UIs (the CLI's `watch`, a TUI, tests) register a
callback and re-render whenever state changes.
"""

from grindlink.client.api import (
    ASSIGNMENTS,
    USERS,
    ApiError,
    Endpoint,
    RecordClient,
)
from grindlink.client.channel import WebSocketChannel, ws_url
from grindlink.client.form import (
    AssignmentForm,
    FormState,
    RecordForm,
    UserProfileForm,
    split_skills,
)
from grindlink.client.live_list import LiveList, ViewState

__all__ = [
    "ASSIGNMENTS",
    "USERS",
    "ApiError",
    "AssignmentForm",
    "Endpoint",
    "FormState",
    "LiveList",
    "RecordClient",
    "RecordForm",
    "UserProfileForm",
    "ViewState",
    "WebSocketChannel",
    "split_skills",
    "ws_url",
]
