"""
VideoTube Backend — Application Error Hierarchy
================================================

What:  The single structured error kind used by handlers and services to
       signal client-facing failures, plus a few subclasses with default
       status codes.
How:   Every ApiError carries a status code, a safe message, an optional list
       of sub-errors and a captured stack. The Request Executor
       (videotube.executor) and the global handlers in main.py turn it into
       `{"success": false, "message": ...}`.

Exception Hierarchy:
    ApiError (status_code=None → 500)
    ├── ValidationError             → 400 Bad Request
    │   └── UniqueConstraintError   → 409 Conflict
    ├── AuthenticationError         → 401 Unauthorized
    ├── NotFoundError               → 404 Not Found
    ├── ConflictError               → 409 Conflict
    ├── PayloadTooLargeError        → 413 Payload Too Large
    └── DatabaseConnectionError     → 503 Service Unavailable

The stack is for operator diagnostics; it never appears in a response body.
"""

import traceback
from typing import Any, Dict, List, Optional

DEFAULT_ERROR_MESSAGE = "Something went wrong"


class ApiError(Exception):
    """
    Base application error.

    Attributes:
        status_code: HTTP status to respond with; None means 500.
        message:     Client-facing description.
        errors:      Sub-errors, e.g. `[{"field": "email", "message": "..."}]`.
        data:        Reserved. Always None.
        success:     Always False.
        stack:       The stack supplied by the caller, else the stack at construction.
        context:     Extra diagnostic info for logs only.
    """

    default_status_code: Optional[int] = None

    def __init__(
        self,
        status_code: Optional[int] = None,
        message: str = DEFAULT_ERROR_MESSAGE,
        errors: Optional[List[Any]] = None,
        stack: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code if status_code is not None else self.default_status_code
        self.message = message
        self.errors = list(errors) if errors else []
        self.data = None
        self.success = False
        self.context = context or {}
        if stack:
            self.stack = stack
        else:
            # Drop this frame so the trace ends at the raising call site
            self.stack = "".join(traceback.format_stack()[:-1])

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code!r}, message={self.message!r})"


class ValidationError(ApiError):
    """
    An entity or request constraint was violated.

    The `field` (when known) is recorded both on the instance and as the
    first sub-error so clients get field-level detail.
    """

    default_status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[List[Any]] = None,
        status_code: Optional[int] = None,
    ):
        if field and not errors:
            errors = [{"field": field, "message": message}]
        super().__init__(status_code=status_code, message=message, errors=errors)
        self.field = field


class UniqueConstraintError(ValidationError):
    """A unique field (username, email) already belongs to another record."""

    default_status_code = 409

    def __init__(self, field: str, value: Optional[str] = None):
        message = f"{field} is already taken"
        if value:
            message = f"{field} '{value}' is already taken"
        super().__init__(message=message, field=field)


class AuthenticationError(ApiError):
    default_status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message)


class NotFoundError(ApiError):
    """Raised when a requested record does not exist."""

    default_status_code = 404

    def __init__(self, resource: str = "resource", resource_id: Optional[Any] = None):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        super().__init__(message=message, context={"resource": resource, "resource_id": str(resource_id)})


class ConflictError(ApiError):
    """The operation conflicts with the current state, e.g. deleting a user who still owns videos."""

    default_status_code = 409

    def __init__(self, message: str = "The request conflicts with the current state"):
        super().__init__(message=message)


class PayloadTooLargeError(ApiError):
    default_status_code = 413

    def __init__(self, limit: int):
        super().__init__(message=f"Request body exceeds the {limit} byte limit")
        self.limit = limit


class DatabaseConnectionError(ApiError):
    """
    The relational store could not be reached.

    Raised by the ConnectionManager at startup (the caller aborts) and by the
    liveness query. The underlying driver error stays in `context`.
    """

    default_status_code = 503

    def __init__(self, message: str = "Database is unreachable", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)
