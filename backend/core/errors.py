# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Error taxonomy for the vault API.

Every failure the service reports to a client is one of the classes below.
Each carries its HTTP status code and a human-readable message, and renders
to the same JSON shape::

    {"success": false, "message": "..."}
"""

from fastapi import status
from fastapi.responses import JSONResponse


class VaultError(Exception):
    """Base class – never raised directly."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(VaultError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid data"


class Unauthenticated(VaultError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Missing caller identity"


class Forbidden(VaultError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFound(VaultError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Password not found"


class InternalFailure(VaultError):
    # Message is fixed: persistence errors are logged, never echoed.
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error"


def error_response(exc: VaultError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message},
    )
