"""
VideoTube Backend — Test Configuration (conftest.py)
=====================================================

Shared pytest fixtures.

Fixture Hierarchy (all function-scoped):
    ├── manager:          ConnectionManager on a fresh in-memory SQLite store
    ├── db_session:       AsyncSession bound to that store
    ├── mock_db_session:  AsyncMock session for failure-path unit tests
    ├── test_client:      HTTPX AsyncClient talking to create_app(manager)
    └── user_payload / video_payload: request bodies
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

# Override settings BEFORE any videotube import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["STATIC_DIR"] = tempfile.mkdtemp(prefix="videotube_static_")
os.environ["CORS_ORIGIN"] = "http://localhost:3000"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from videotube.database import ConnectionManager

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def manager():
    """A ConnectionManager with the schema created. Each test gets an empty store."""
    mgr = ConnectionManager(TEST_DATABASE_URL)
    await mgr.create_schema()
    yield mgr
    await mgr.dispose()


@pytest_asyncio.fixture
async def db_session(manager):
    async with manager.session() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession.

    Usage:
        mock_db_session.flush.side_effect = IntegrityError(...)
        await user_service._save(mock_db_session, user)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def test_client(manager):
    """
    HTTPX AsyncClient bound to an app using the test store.

    ASGITransport does not run the lifespan; the manager fixture already
    created the schema.
    """
    from videotube.main import create_app

    app = create_app(manager)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def user_payload():
    def _make(username: str = "alice", email: str = "alice@example.com", **overrides):
        payload = {
            "username": username,
            "email": email,
            "full_name": "Alice Liddell",
            "avatar_url": "https://cdn.example.com/avatars/alice.png",
            "password": "correct-horse-battery",
        }
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture
def video_payload():
    def _make(owner_id, **overrides):
        payload = {
            "video_file_url": "https://cdn.example.com/videos/intro.mp4",
            "thumbnail_url": "https://cdn.example.com/thumbs/intro.jpg",
            "title": "Intro",
            "description": "The first upload",
            "duration": 93.5,
            "owner_id": str(owner_id),
        }
        payload.update(overrides)
        return payload

    return _make
