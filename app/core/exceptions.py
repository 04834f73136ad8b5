"""
Domain error taxonomy.

Every error carries the HTTP status it maps to and a message that is safe to
show to the client. The handler registered in main.py renders them as
{"success": false, "error": "<message>"}.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse


class PortalError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Request failed"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


class AuthenticationError(PortalError):
    """Missing, malformed, or expired credential."""
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid authentication"


class AuthorizationError(PortalError):
    """Authenticated, but the caller's role or permissions do not allow this."""
    status_code = status.HTTP_403_FORBIDDEN
    message = "Access denied"


class ValidationError(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class InvalidCodeError(PortalError):
    """No active verification code matches the submitted value."""
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid verification code"


class ExpiredCodeError(PortalError):
    """The submitted verification code matched, but its expiry has passed."""
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Verification code has expired"


class NotFoundError(PortalError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class ConflictError(PortalError):
    status_code = status.HTTP_409_CONFLICT
    message = "Conflict"


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the JSON error envelope shared by all endpoints."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
    )


async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    response = error_response(exc.status_code, exc.message)
    if headers:
        response.headers.update(headers)
    return response
