"""Error taxonomy shared by the server and the Python client.

Learn: Every error carries the message a user is allowed to see and the
HTTP status it maps to. main.py registers one exception handler for the
base class, so routes and services just raise — they never build error
responses by hand.
"""


class GrindLinkError(Exception):
    """Base error. `message` is safe to show to the caller."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GrindLinkError):
    """Missing or malformed required input."""

    status_code = 400


class StorageError(GrindLinkError):
    """The document store failed a read or a write."""

    def __init__(self, message: str = "Internal server error."):
        super().__init__(message)


class InitializationError(GrindLinkError):
    """The document store client never came up at startup."""

    def __init__(self, message: str = "Database not initialized."):
        super().__init__(message)
