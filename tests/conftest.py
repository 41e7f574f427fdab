import os
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession
from typing import AsyncGenerator

# Configure the service for tests via environment rather than hardcoding directly.
# Allow overriding with TEST_DATABASE_URL; fall back to a local sqlite file.
test_db_url = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///./tests/test.db")
os.environ["DATABASE_URL"] = test_db_url
os.environ["AUTH_ENABLED"] = "false"
os.environ.pop("GATEKEEPER_URL", None)
os.environ.pop("PROFILE_SERVICE_URL", None)

from message_api.core import config as _config  # noqa: E402
_config.get_settings.cache_clear()  # ensure new env vars are picked up # type: ignore[attr-defined]
_settings = _config.get_settings()

from message_api.api.main import app  # noqa: E402
from message_api.api import deps  # noqa: E402
from message_api.core.errors import PolicyUnavailableError  # noqa: E402
from message_api.db.session import AsyncSessionLocal, engine, Base  # noqa: E402
from message_api.models.message import Message  # noqa: E402
from message_api.services.status import dependency_status  # noqa: E402
from sqlalchemy import delete  # noqa: E402

ACTOR = "12121212"


class FakePolicy:
    """Allows everything except groups listed in ``denied``; records calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.denied: set[str] = {"no-permission"}
        self.unavailable = False

    async def can_view(self, actor_id: str, group_id: str) -> bool:
        self.calls.append((actor_id, group_id))
        if self.unavailable:
            raise PolicyUnavailableError("gatekeeper unreachable")
        return group_id not in self.denied


@pytest.fixture(scope="session")
def settings():
    """Expose application settings to tests if needed."""
    return _settings

@pytest_asyncio.fixture()
async def database():
    """Fresh tables per test; connections are released so no pooled
    connection outlives the test's event loop."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with AsyncSessionLocal() as session:  # type: ignore
        await session.execute(delete(Message))
        await session.commit()
    await engine.dispose()

@pytest_asyncio.fixture()
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:  # type: ignore
        yield session

@pytest.fixture(autouse=True)
def _reset_status():
    dependency_status.reset()
    yield
    dependency_status.reset()

@pytest.fixture()
def policy():
    fake = FakePolicy()
    app.dependency_overrides[deps.get_policy] = lambda: fake
    yield fake
    app.dependency_overrides.pop(deps.get_policy, None)

@pytest.fixture()
def actor_headers():
    return {"X-User-Id": ACTOR}

@pytest_asyncio.fixture()
async def client(database, policy):
    # httpx >=0.28 removed the 'app=' shortcut; use ASGITransport explicitly
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
