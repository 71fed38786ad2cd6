"""
Deskmate Backend — Custom Exception Hierarchy
===============================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and the auth gate; caught by global handlers.

Exception Hierarchy:
    DeskmateError (base)
    ├── ValidationError               → 400 Bad Request
    │   └── NoChangesRequestedError   → 400 Bad Request
    ├── UnauthorizedError             → 401 Unauthorized
    ├── NotFoundError                 → 404 Not Found
    ├── DuplicateIdentityError        → 409 Conflict
    ├── DatabaseError                 → 500 Internal Server Error
    └── TokenError                    (internal, never reaches a client)
        ├── TokenMissingError
        ├── TokenMalformedError
        ├── TokenExpiredError
        └── TokenSignatureInvalidError

The four TokenError kinds stay distinct inside the process so they can be
logged and tested. The auth gate turns every one of them into a plain
UnauthorizedError before a response is built.
"""

from typing import Any, Dict, Optional


class DeskmateError(Exception):
    """
    Base exception for all Deskmate application errors.

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


class ValidationError(DeskmateError):
    """
    Raised when client input fails validation.

    When:    Missing or empty required fields, bad login credentials.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Please enter a title",
            "details": {"field": "title"}
        }
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


class NoChangesRequestedError(ValidationError):
    """
    Raised when a partial update carries nothing applicable.

    An edit request whose fields are all omitted or empty is rejected
    instead of succeeding as a silent no-op.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "No changes were made",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthorizedError(DeskmateError):
    """
    Raised when a request lacks a valid session.

    The message is always generic. Which check failed (missing header,
    malformed token, expiry, signature) is logged, not returned.
    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(DeskmateError):
    """
    Raised when a requested resource does not exist for the caller.

    "Does not exist" and "belongs to another account" produce the same
    exception with the same message.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} could not be found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DuplicateIdentityError(DeskmateError):
    """
    Raised when registering an email that already has an account.

    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "An account with this email already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(DeskmateError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost mid-query, constraint violation, deadlock, etc.
    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. Detailed error
    info is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


# ══════════════════════════════════════════════════════════════════════════
# Session token failures
# ══════════════════════════════════════════════════════════════════════════


class TokenError(DeskmateError):
    """Base for session token verification failures."""

    reason = "invalid"

    def __init__(
        self,
        message: str = "Session token rejected",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["reason"] = self.reason
        super().__init__(message=message, context=ctx)


class TokenMissingError(TokenError):
    """No token was presented."""

    reason = "missing"


class TokenMalformedError(TokenError):
    """The token could not be parsed, or its payload is not a session claim."""

    reason = "malformed"


class TokenExpiredError(TokenError):
    """The token's signature is valid but its expiry has passed."""

    reason = "expired"


class TokenSignatureInvalidError(TokenError):
    """The token parses but was not signed with the current secret."""

    reason = "signature_invalid"
