"""
Kafiza Backend — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the failure kinds of the API.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return the error envelope with the matching HTTP status code.
Who:   Raised by the repository, the connection manager and configuration;
       caught by global handlers.

Exception Hierarchy:
    KafizaError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    ├── StoreConnectionError     → 503 Service Unavailable (store unreachable)
    ├── InternalError            → 500 Internal Server Error
    └── ConfigurationError       → fatal at startup, never returned per request
"""

from typing import Any, Dict, Optional


class KafizaError(Exception):
    """
    Base exception for all Kafiza application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, only returned for validation errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(KafizaError):
    """
    Raised when client input fails validation.

    When:    Malformed id, invalid pagination, empty update, unknown sort field,
             category value outside its allowed set.
    HTTP:    400 Bad Request

    Example response:
        {
            "success": false,
            "error": "validation_error",
            "message": "Invalid limit (must be between 1 and 100)",
            "details": {"field": "limit"}
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


class NotFoundError(KafizaError):
    """
    Raised when a requested resource does not exist or is inactive.

    When:    GET/PUT /api/farmers/{id} for a missing or soft-deleted farmer,
             DELETE for an id that was never stored.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        if resource_id:
            message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StoreConnectionError(KafizaError):
    """
    Raised when the document store cannot be reached.

    When:    The first connect of the process fails after its retries, or an
             operation detects a dropped connection.
    HTTP:    503 Service Unavailable

    The connection manager never caches a broken engine, so a later call
    retries the connection.
    """

    def __init__(
        self,
        message: str = "The database is temporarily unavailable. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InternalError(KafizaError):
    """
    Raised when a store operation fails unexpectedly.

    When:    Constraint violation, serialization failure, driver error.
    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. The
        underlying cause is logged server-side only.
    """

    def __init__(
        self,
        message: str = "An internal error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConfigurationError(KafizaError):
    """
    Raised when required settings are missing.

    When:    At startup, before the first request is served.
    """

    def __init__(
        self,
        message: str = "Configuration is incomplete",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
