"""
Shared error handling for the Storefront gateway stack.

Every error the gateway produces reaches the client as the same envelope,
``{"error": "<generic message>"}``. The ``details`` attached to an exception
are for logs only and never rendered.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


NOT_FOUND_MESSAGE = "Not found"
INVALID_REQUEST_MESSAGE = "Invalid request"
INTERNAL_ERROR_MESSAGE = "Internal server error"


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str


class GatewayError(Exception):
    """Base exception for gateway services."""

    status_code = 500
    public_message = INTERNAL_ERROR_MESSAGE

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to the client-facing error response."""
        return ErrorResponse(error=self.public_message)


class RouteNotFound(GatewayError):
    """No registered route matches the request method and path."""

    status_code = 404
    public_message = NOT_FOUND_MESSAGE

    def __init__(self, message: str = "Route not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("ROUTE_NOT_FOUND", message, details)


class InvalidParameter(GatewayError):
    """A required request parameter is missing or malformed."""

    status_code = 400
    public_message = INVALID_REQUEST_MESSAGE

    def __init__(self, parameter: str, message: str = "Invalid parameter", details: Optional[Dict[str, Any]] = None):
        self.parameter = parameter
        super().__init__("INVALID_PARAMETER", f"{parameter}: {message}", details)


class BackendUnavailable(GatewayError):
    """Transport-level failure reaching a backend."""

    def __init__(self, backend: str, message: str = "Backend unavailable", details: Optional[Dict[str, Any]] = None):
        self.backend = backend
        super().__init__("BACKEND_UNAVAILABLE", f"{backend}: {message}", details)


class BackendApplicationError(GatewayError):
    """Backend was reached but reported an error, or answered with garbage."""

    def __init__(self, backend: str, message: str = "Backend error", details: Optional[Dict[str, Any]] = None):
        self.backend = backend
        super().__init__("BACKEND_APPLICATION_ERROR", f"{backend}: {message}", details)
