"""
PetNest Backend — Custom Exception Hierarchy
==============================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and auth dependencies; caught by global handlers.
When:  During request processing when recoverable errors occur.

Exception Hierarchy:
    PetNestError (base)
    ├── ValidationError            → 400 Bad Request (client can fix)
    ├── InvalidStateError          → 400 Bad Request (pet/adoption in wrong state)
    ├── DuplicateApplicationError  → 400 Bad Request (active application exists)
    ├── AuthenticationError        → 401 Unauthorized (missing/invalid token)
    ├── UnauthorizedError          → 403 Forbidden (role or ownership mismatch)
    ├── NotFoundError              → 404 Not Found
    ├── DatabaseError              → 500 Internal Server Error
    └── RateLimitExceededError     → 429 Too Many Requests

    Every adoption workflow precondition raises one of these BEFORE the
    first write, so a rejected request never leaves a partial mutation.
"""

from typing import Any, Dict, Optional


class PetNestError(Exception):
    """
    Base exception for all PetNest application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only as `details`
                  for 4xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PetNestError):
    """
    Raised when client input fails a business validation rule.

    When:    Missing agreement flag, unsupported decision target, bad manual status.
    HTTP:    400 Bad Request

    Schema-level problems (wrong types, missing body fields) are still
    reported by FastAPI as 422; this class is for business rules.
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


class InvalidStateError(PetNestError):
    """
    Raised when an entity is not in the state an operation requires.

    When:    Applying for a pet that is not Available, cancelling an adoption
             that is not Pending, approving for a pet already adopted by
             someone else.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "The resource is not in a valid state for this operation",
        current_status: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if current_status:
            ctx["current_status"] = current_status
        super().__init__(message=message, context=ctx)
        self.current_status = current_status


class DuplicateApplicationError(PetNestError):
    """
    Raised when a user already holds a Pending or Approved application
    for the same pet.

    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "You have already applied for this pet",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationError(PetNestError):
    """
    Raised when the bearer token is missing, malformed, expired, or the
    login credentials do not match.

    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthorizedError(PetNestError):
    """
    Raised when an authenticated caller lacks the role or ownership an
    operation requires.

    When:    Non-admin deciding an adoption, admin submitting an application,
             cancelling someone else's application.
    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "Not authorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(PetNestError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that into
    this exception so routes stay free of HTTP logic.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(PetNestError):
    """
    Raised when database operations fail unexpectedly.

    Security Note:
        The message returned to the client is always generic.
        Detailed error info is logged server-side only.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(PetNestError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
