"""Error taxonomy for the todo store.

Only failures that need to carry context are exceptions. Blank or unchanged
input and operations on a missing id are not errors at all: the mutation
returns the collection unchanged and logs the no-op at DEBUG.

None of these exceptions escape the public operations; they are raised by the
strict helpers and caught, logged and recovered from at the store boundary.
"""

from typing import Optional


class TodoStoreError(Exception):
    """Base class for todo store errors."""


class DecodeFailure(TodoStoreError):
    """Raised when a persisted snapshot cannot be decoded."""

    def __init__(self, message: str, index: Optional[int] = None):
        self.index = index
        if index is not None:
            message = f"record {index}: {message}"
        super().__init__(message)


class PersistFailure(TodoStoreError):
    """Raised when a write to host storage fails."""

    def __init__(self, key: str, cause: Optional[BaseException] = None):
        self.key = key
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"failed to persist '{key}'{detail}")


class ConfirmationDeclined(TodoStoreError):
    """Raised when the user declines a destructive operation."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"{operation} cancelled by user")
