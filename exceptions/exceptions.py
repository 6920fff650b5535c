"""
Custom exceptions for MOODi.

These exceptions are intentionally simple and descriptive.
They are used across:

  - core/api/ and core/orchestrator/ (raised)
  - runtime/api/ (translated into JSON error responses)
  - client/ (raised by the HTTP client and the turn driver)

Placing them at the project root (exceptions/) avoids circular imports
and keeps exception types consistent across modules.
"""

from typing import Optional


class MoodiError(Exception):
    """
    Base class for every error the server reports to its caller.

    `status_code` is the HTTP status the error maps to and `message` is
    the generic text placed in the response body.
    """

    status_code = 500
    message = "Internal server error."

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class InvalidInputError(MoodiError):
    """
    Raised when a request body is missing or has the wrong shape.

    Example:
        {"conversation": [...]}   ← expected
        {"conversation": "hi"}    ← raises this exception (400)
    """

    status_code = 400
    message = "A valid conversation array is required."


class UpstreamError(MoodiError):
    """
    Raised when the model provider answers with a non-success status.

    The provider's status code is propagated to the caller; the provider's
    error body is kept in `details` for server-side logging only.
    """

    message = "OpenAI API request failed."

    def __init__(self, status_code: int, details: Optional[str] = None, message: Optional[str] = None):
        self.details = details
        super().__init__(message=message, status_code=status_code)


class InternalError(MoodiError):
    """Raised for any other failure while serving a request (500)."""


class ApiRequestError(Exception):
    """
    Raised by the MOODi HTTP client when a route call does not succeed.

    `status_code` is None when the server could not be reached at all.
    """

    def __init__(self, route: str, status_code: Optional[int] = None, details: Optional[str] = None):
        self.route = route
        self.status_code = status_code
        self.details = details
        if status_code is None:
            msg = f"Could not reach {route}: {details or 'connection failed'}"
        else:
            msg = f"{route} returned HTTP {status_code}"
        super().__init__(msg)

    @property
    def is_connection_error(self) -> bool:
        return self.status_code is None


class TurnInProgressError(Exception):
    """
    Raised when a new message is submitted while the previous turn is still
    waiting for the server.
    """
