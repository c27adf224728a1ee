"""
FeedHub Backend — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for every failure the API reports.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the right HTTP status.
Who:   Raised by services, policies and the authorization gate.

Exception Hierarchy:
    FeedHubError (base)
    ├── ValidationError              → 400 Bad Request
    ├── ConflictError                → 400 Bad Request (duplicate account)
    ├── AuthenticationError          → 401 Unauthorized
    │   ├── NoTokenError                 reason=no_token
    │   ├── InvalidTokenError            reason=invalid_token
    │   ├── TokenNotFoundError           reason=token_not_found
    │   ├── TokenExpiredError            reason=token_expired
    │   ├── UserNotFoundError            reason=user_not_found
    │   └── InvalidCredentialsError      reason=invalid_credentials
    ├── AuthorizationError           → 403 Forbidden
    ├── NotFoundError                → 404 Not Found
    └── StorageBackendError          → 500 Internal Server Error

`context` is logged server-side only; it never reaches the client.
"""

from typing import Any, Dict, Optional


class FeedHubError(Exception):
    """
    Base exception for all FeedHub application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(FeedHubError):
    """
    Raised when client input fails validation.

    When:    Missing fields, bad user type, short password, unsupported media.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ConflictError(FeedHubError):
    """
    Raised when a signup collides with an existing (email, user type) pair.

    HTTP:    400 Bad Request (kept at 400 for client compatibility)
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationError(FeedHubError):
    """
    Raised when a request cannot be tied to a live session.

    HTTP:    401 Unauthorized

    Every subclass carries a short, stable `reason` code so clients can tell
    "absent" from "expired" from "revoked" without parsing the message.
    """

    reason = "authentication_failed"
    default_message = "authentication failed"

    def __init__(
        self,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message or self.default_message, context=context)


class NoTokenError(AuthenticationError):
    reason = "no_token"
    default_message = "no token provided"


class InvalidTokenError(AuthenticationError):
    """Signature, structure or claims of the bearer token did not check out."""

    reason = "invalid_token"
    default_message = "invalid token"


class TokenNotFoundError(AuthenticationError):
    """No active session record matches the token (never issued, or revoked)."""

    reason = "token_not_found"
    default_message = "token not found or revoked"


class TokenExpiredError(AuthenticationError):
    reason = "token_expired"
    default_message = "token expired"


class UserNotFoundError(AuthenticationError):
    reason = "user_not_found"
    default_message = "user not found"


class InvalidCredentialsError(AuthenticationError):
    reason = "invalid_credentials"
    default_message = "invalid credentials"


class AuthorizationError(FeedHubError):
    """
    Raised when an authenticated identity attempts a forbidden action.

    When:    Consumer creating a post, non-owner editing/deleting a post,
             third party deleting a comment.
    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "not authorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(FeedHubError):
    """
    Raised when a requested resource does not exist.

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StorageBackendError(FeedHubError):
    """
    Raised when the document store or the object store fails.

    When:    Connection lost mid-query, disk full, storage misconfigured.
    HTTP:    500 Internal Server Error

    The message is actionable but generic; driver errors, SQL and file
    paths go into `context` and the server log only.
    """

    def __init__(
        self,
        message: str = "A storage error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
