"""
Notewise Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   A fresh in-memory SQLite database (aiosqlite) per test, a mocked
       generation client, and an httpx AsyncClient wired to a fresh app.

Fixture Hierarchy (all function-scoped):
    ├── db_engine / session_factory / db_session: real schema, in memory
    ├── mock_db_session: AsyncMock session for error-path tests
    ├── fake_client: AsyncMock standing in for GeminiService
    ├── fake_queue: MagicMock standing in for GenerationQueue
    ├── make_note: async helper inserting a note
    └── app / api_client: FastAPI app with dependencies overridden
"""

import os

# Must be set before any notewise import reads settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["GEMINI_API_KEY"] = "test-key-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

from types import SimpleNamespace  # noqa: E402
from typing import Optional  # noqa: E402
from unittest.mock import AsyncMock, MagicMock, patch  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from notewise.config import GenerationConfig  # noqa: E402
from notewise.database import Base, get_db_session  # noqa: E402
from notewise.models import Note  # noqa: E402
from notewise.services.gemini_service import GeminiService, get_generation_client  # noqa: E402
from notewise.services.retry import RetryExecutor  # noqa: E402
from notewise.services.usage import UsageStats  # noqa: E402

TEST_MODEL = "gemini-test"
USER_ID = "user-1"
OTHER_USER_ID = "user-2"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """One in-memory database per test; StaticPool keeps a single connection."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A mock async session for error paths a real database will not produce.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("stmt", {}, Exception())
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    return session


@pytest.fixture
def make_note(session_factory):
    """
    Insert a note and return it.

    Usage:
        note = await make_note(content="Meeting notes", user_id="user-1")
    """

    async def _make(
        content: Optional[str] = "Discussed the roadmap and hiring plan.",
        user_id: str = USER_ID,
        title: str = "Test note",
        **fields,
    ) -> Note:
        async with session_factory() as session:
            note = Note(user_id=user_id, title=title, content=content, **fields)
            session.add(note)
            await session.commit()
            return note

    return _make


# ══════════════════════════════════════════════════════════════════════════
# Generation Client & Queue
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def generation_config():
    return GenerationConfig(api_key="test-key-not-real", model=TEST_MODEL)


@pytest.fixture
def fake_client(generation_config):
    """
    Mock with the GeminiService surface. Program it per test:

        fake_client.generate_text.return_value = "- point one"
        fake_client.generate_text.side_effect = GenerationError(...)
    """
    client = MagicMock()
    client.model_name = TEST_MODEL
    client.config = generation_config
    client.generate_text = AsyncMock(return_value="- First point\n- Second point")
    client.health_check = AsyncMock(return_value=True)
    client.get_usage_stats = MagicMock(return_value=UsageStats())
    client.recent_usage = MagicMock(return_value=[])
    client.clear_usage_logs = MagicMock()
    return client


@pytest.fixture
def blank_reply_client(generation_config):
    """Real GeminiService whose patched SDK model answers with whitespace only."""
    with patch("notewise.services.gemini_service.genai") as genai:
        model = MagicMock()
        model.generate_content_async = AsyncMock(return_value=SimpleNamespace(text="   "))
        genai.GenerativeModel.return_value = model

        async def no_sleep(seconds: float) -> None:
            return None

        yield GeminiService(generation_config, retry_executor=RetryExecutor(sleep=no_sleep))


@pytest.fixture
def fake_queue():
    queue = MagicMock()
    queue.enqueue = MagicMock(return_value=True)
    queue.running = True
    return queue


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(session_factory, fake_client, fake_queue):
    """
    A fresh app whose database, client and queue point at the test doubles.

    ASGITransport does not run the lifespan, so app.state is filled here.
    """
    from notewise.main import create_app

    application = create_app()

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_db_session
    application.dependency_overrides[get_generation_client] = lambda: fake_client
    application.state.generation_client = fake_client
    application.state.generation_queue = fake_queue
    return application


@pytest_asyncio.fixture
async def api_client(app):
    """
    Usage:
        response = await api_client.get("/api/notes", headers={"X-User-ID": "user-1"})
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
