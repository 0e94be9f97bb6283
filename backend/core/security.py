# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Identity gate.  Every credential request passes through here before any
routing, body parsing or storage access happens.

Responsibilities
----------------
1. Read the caller identity from the configured header.
2. Optionally verify it as an HS256 JWT            (PyJWT)
3. Bind the identity to ``request.state.identity`` or short-circuit with 401.
4. FastAPI dependency that hands the bound identity to a handler.

The identity is a trust-boundary input.  In plain mode the header value is
taken as-is; only signed-token mode proves anything about the caller.
"""

from typing import Iterable, Optional

import jwt as _jwt        # PyJWT
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from core.config import settings
from core.errors import Unauthenticated, error_response
from core.logger import logger
from models.credential import OWNER_ID_MAX_LENGTH

# ---------------------------------------------------------------------------
# 1.  Identity resolution
# ---------------------------------------------------------------------------


def decode_identity_token(token: str) -> dict:
    """
    Decode and verify an identity JWT.  Raises ``Unauthenticated`` on any
    failure (expired, bad signature, malformed).
    """
    try:
        return _jwt.decode(token, settings.identity_token_secret, algorithms=["HS256"])
    except _jwt.InvalidTokenError:
        raise Unauthenticated("Invalid or expired identity token")


def _bounded(identity: str) -> str:
    if len(identity) > OWNER_ID_MAX_LENGTH:
        raise Unauthenticated(
            f"Caller identity exceeds {OWNER_ID_MAX_LENGTH} characters"
        )
    return identity


def resolve_identity(raw: Optional[str]) -> str:
    """
    Turn the raw header value into a caller identity.

    Plain mode returns the trimmed header value.  Token mode returns the
    ``sub`` claim of the verified JWT.  Either way the identity must fit the
    owner column.
    """
    value = (raw or "").strip()
    if not value:
        raise Unauthenticated()

    if not settings.identity_token_secret:
        return _bounded(value)

    if value.lower().startswith("bearer "):
        value = value[len("bearer "):].strip()
    payload = decode_identity_token(value)

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        raise Unauthenticated("Identity token has no subject")
    return _bounded(subject.strip())


# ---------------------------------------------------------------------------
# 2.  Gate middleware
# ---------------------------------------------------------------------------


class IdentityGateMiddleware(BaseHTTPMiddleware):
    """
    Reject requests to *protected_paths* that carry no identity.

    Runs ahead of routing so that a request without identity is answered with
    401 even when its body is malformed.  CORS preflights pass through.
    """

    def __init__(self, app, protected_paths: Iterable[str]):
        super().__init__(app)
        self.protected_paths = frozenset(protected_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method == "OPTIONS" or request.url.path not in self.protected_paths:
            return await call_next(request)

        try:
            identity = resolve_identity(request.headers.get(settings.identity_header))
        except Unauthenticated as exc:
            client_ip = request.client.host if request.client else "unknown"
            logger.warning(
                "Rejected %s %s | client=%s reason=%s",
                request.method,
                request.url.path,
                client_ip,
                exc.message,
            )
            return error_response(exc)

        request.state.identity = identity
        return await call_next(request)


# ---------------------------------------------------------------------------
# 3.  FastAPI dependency
# ---------------------------------------------------------------------------


def get_identity(request: Request) -> str:
    """
    Dependency: the identity bound by :class:`IdentityGateMiddleware`.

    Raises ``Unauthenticated`` if the route was reached without the gate,
    so a misconfigured app fails closed.
    """
    identity = getattr(request.state, "identity", None)
    if not identity:
        raise Unauthenticated()
    return identity
