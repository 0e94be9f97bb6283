# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
FastAPI application factory.

Responsibilities
----------------
* Instantiate the FastAPI app.
* Register the identity gate, CORS and request-logging middleware.
* Map every error to the ``{"success": false, "message": ...}`` body.
* Mount the credentials router.
* Expose a /health endpoint for container liveness checks.
* Create tables on startup, dispose of the engine on shutdown.

Run directly with ``python backend/main.py`` to serve on the configured
host/port.
"""

import time

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from core.config import settings
from core.errors import InternalFailure, InvalidInput, VaultError, error_response
from core.logger import logger
from core.security import IdentityGateMiddleware
from database import Base, engine
from vault.router import CREDENTIALS_PATH, router as credentials_router
import models.credential  # noqa: F401  registers the table on Base.metadata

app = FastAPI(title="Credential Vault", version="1.0.0")

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------
# Starlette runs the most recently added middleware first, so the order on
# the wire is: request log → CORS → identity gate → router.  CORS sits
# outside the gate so preflights never need an identity.

app.add_middleware(IdentityGateMiddleware, protected_paths=[CREDENTIALS_PATH])

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=[settings.identity_header, "Authorization", "Content-Type"],
)


class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "unknown"

        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            client_ip,
            response.status_code,
            elapsed_ms,
        )
        return response


app.add_middleware(_RequestLogMiddleware)

# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


@app.exception_handler(VaultError)
async def _vault_error(request: Request, exc: VaultError):
    return error_response(exc)


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError):
    # Report the first offending field, e.g. "Invalid data (password): Field required"
    errors = exc.errors()
    message = InvalidInput.default_message
    if errors:
        first = errors[0]
        # Integer parts are list indexes or JSON decode offsets, not field names.
        field = ".".join(
            str(p) for p in first.get("loc", ()) if p != "body" and not isinstance(p, int)
        )
        detail = first.get("msg", "")
        message = f"{message} ({field}): {detail}" if field else f"{message}: {detail}"
    return error_response(InvalidInput(message))


@app.exception_handler(Exception)
async def _unhandled_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(InternalFailure())


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(credentials_router)

# ---------------------------------------------------------------------------
# Lifecycle + health check
# ---------------------------------------------------------------------------


@app.on_event("startup")
async def _on_startup():
    Base.metadata.create_all(bind=engine)
    logger.info("Credential Vault service starting up")


@app.on_event("shutdown")
async def _on_shutdown():
    engine.dispose()
    logger.info("Credential Vault service shutting down")


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
