"""
Shared error handling for the Partner Console.

Every error body carries a human readable ``message``; the remaining keys
depend on the error family.
"""

from typing import Dict, Any, List, Optional
from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """Standard error response format."""

    model_config = ConfigDict(extra="allow")

    message: str
    code: str


class ConsoleError(Exception):
    """Base exception for Partner Console services."""

    status_code: int = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None,
                 status_code: Optional[int] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(code=self.code, message=self.message, **self.details)


class ValidationError(ConsoleError):
    """Request body failed schema validation."""

    def __init__(self, message: str = "Validation failed", errors: Optional[List[Dict[str, Any]]] = None):
        self.errors = errors or []
        super().__init__("VALIDATION_ERROR", message, {"errors": self.errors}, status_code=400)


class InvalidInputError(ConsoleError):
    """Path parameter failed type coercion."""

    def __init__(self, message: str = "Invalid ID format", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_INPUT", message, details, status_code=400)


class NotFoundError(ConsoleError):
    """Referenced entity does not exist."""

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details, status_code=404)


class UpstreamUnavailableError(ConsoleError):
    """The remote origin could not be reached or answered garbage."""

    def __init__(self, message: str, error: str, url: str, method: str, status_code: int = 500):
        self.error = error
        self.url = url
        self.method = method
        super().__init__(
            "UPSTREAM_UNAVAILABLE",
            message,
            {"error": error, "url": url, "method": method},
            status_code=status_code,
        )
