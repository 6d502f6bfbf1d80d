"""
AssetDesk Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services, dependencies and routes; caught by global handlers.

Exception Hierarchy:
    AssetDeskError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── DatabaseError            → 500 Internal Server Error
    └── DeliveryError            → 500 Internal Server Error

The notification dispatcher never lets any of these escape; see
app/services/guard.py.
"""

from typing import Any, Dict, Optional


class AssetDeskError(Exception):
    """
    Base exception for all AssetDesk application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned for 5xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(AssetDeskError):
    """
    Raised when client input fails a business rule.

    When:    Empty id list for mark-read, snooze without a target time,
             unknown notification template or type.
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


class AuthenticationError(AssetDeskError):
    """
    Raised when the request carries no usable caller identity.

    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(AssetDeskError):
    """
    Raised when the caller lacks the role an endpoint requires.

    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        required_role: str = "admin",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["required_role"] = required_role
        super().__init__(
            message=f"This action requires the '{required_role}' role",
            context=ctx,
        )
        self.required_role = required_role


class NotFoundError(AssetDeskError):
    """
    Raised when a requested resource does not exist.

    When:    Snoozing or dismissing a notification that does not exist or
             belongs to another user.
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


class DatabaseError(AssetDeskError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic.
        Detailed error info is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DeliveryError(AssetDeskError):
    """
    Raised when a notification could not be persisted for its recipient.

    Who:     Raised by NotificationService.deliver; swallowed and logged by
             the dispatcher, surfaced as a 500 by the admin endpoints.
    """

    def __init__(
        self,
        message: str = "The notification could not be delivered",
        recipient_user_id: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if recipient_user_id is not None:
            ctx["recipient_user_id"] = recipient_user_id
        super().__init__(message=message, context=ctx)
        self.recipient_user_id = recipient_user_id
