"""
Shared fixtures for the vault test suite.

A throw-away SQLite file stands in for the production database.  The URL is
exported before any backend module is imported because ``core.config`` and
``database`` build their singletons at import time.
"""

import os
import tempfile
from pathlib import Path

_DB_DIR = tempfile.mkdtemp(prefix="vault-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_DB_DIR) / 'vault.db'}"
os.environ["IDENTITY_TOKEN_SECRET"] = ""
os.environ["IDENTITY_HEADER"] = "X-User-Id"

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport  # noqa: E402

from database import Base, SessionLocal, engine  # noqa: E402
from main import app  # noqa: E402

IDENTITY_HEADER = "X-User-Id"


def as_user(identity: str) -> dict:
    """Request headers for *identity*."""
    return {IDENTITY_HEADER: identity}


@pytest.fixture(autouse=True)
def fresh_schema():
    """Every test starts with empty tables (ASGITransport skips startup hooks)."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest_asyncio.fixture
async def client():
    """Async HTTP client wrapping the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sample_body():
    return {"site": "x.com", "username": "a", "password": "p1"}
