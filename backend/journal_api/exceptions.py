"""
Journal API — Custom Exception Hierarchy
=========================================

What:  Application-specific exceptions for each error scenario.
Why:   Custom exceptions map cleanly onto HTTP status codes and keep internal
       details (SQL, file paths, tokens) out of API responses.
How:   Each exception carries a user-facing message, a debug `context` dict
       (logged only) and optional `details` that are safe to return.
       Global handlers registered in main.py turn them into JSON responses.

Exception Hierarchy:
    JournalAPIError (base)
    ├── ValidationError        → 400 Bad Request
    ├── UnauthenticatedError   → 401 Unauthorized
    ├── ForbiddenError         → 403 Forbidden
    ├── NotFoundError          → 404 Not Found
    ├── ConflictError          → 409 Conflict
    ├── BlobStorageError       → 500 Internal Server Error
    └── DatabaseError          → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class JournalAPIError(Exception):
    """
    Base exception for all Journal API errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
        details:  Extra keys merged into the response body (must be safe)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(JournalAPIError):
    """
    Raised when client input fails validation.

    When:    Empty content, empty search query, missing file, disallowed MIME
             type, oversized upload, malformed request body.
    HTTP:    400 Bad Request

    Always raised before any store mutation.
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx, details=details)
        self.field = field


class UnauthenticatedError(JournalAPIError):
    """
    Raised when a route requires an identity and none could be resolved.

    HTTP:    401 Unauthorized
    """

    status_code = 401

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(JournalAPIError):
    """
    Raised when the caller is authenticated but lacks the required privilege.

    HTTP:    403 Forbidden

    Never raised for anonymous callers: those always get
    UnauthenticatedError first.
    """

    status_code = 403

    def __init__(
        self,
        message: str = "Admin access required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(JournalAPIError):
    """
    Raised when a requested resource does not exist for the caller.

    HTTP:    404 Not Found

    Rows owned by another user are reported exactly like missing rows;
    the resource id is kept in `context` only.
    """

    status_code = 404

    def __init__(
        self,
        message: str = "Resource not found",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(JournalAPIError):
    """
    Raised when a write would violate a uniqueness rule.

    When:    Duplicate email on user creation or profile update, or the
             bootstrap-admin endpoint called after an admin exists.
    HTTP:    409 Conflict
    """

    status_code = 409

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class BlobStorageError(JournalAPIError):
    """
    Raised when the blob store cannot write or read attachment bytes.

    HTTP:    500 Internal Server Error

    The storage key and OS error go to the log; the client only sees
    the generic message.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(JournalAPIError):
    """
    Raised when a database operation fails unexpectedly.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. The SQL error
        is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
