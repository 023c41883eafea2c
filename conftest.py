import os
import tempfile
from datetime import datetime, timedelta
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Tests run against a throwaway SQLite file; settings must be in place before
# any service module is imported.
env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=False)

_db_dir = tempfile.mkdtemp(prefix="tapcard-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ANALYTICS_REFRESH_BACKEND"] = "inline"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["APP_BASE_URL"] = "https://tapcard.test"
os.environ["API_BASE_URL"] = "https://api.tapcard.test"
os.environ["PAYFAST_MERCHANT_ID"] = "10000100"
os.environ["PAYFAST_MERCHANT_KEY"] = "46f0cd694581a"
os.environ["PAYFAST_PASSPHRASE"] = "test-passphrase"
os.environ["PAYFAST_VALIDATE_WITH_GATEWAY"] = "false"

from libs.common.config import get_settings  # noqa: E402

get_settings.cache_clear()
settings = get_settings()

from libs.auth.dependencies import get_current_user  # noqa: E402
from libs.auth.models import AuthUser  # noqa: E402
from libs.common.datetime_utils import utc_now  # noqa: E402
from libs.common.errors import UnauthorizedError  # noqa: E402
from libs.common.storage import get_storage_service  # noqa: E402
from libs.db.base import Base  # noqa: E402
from libs.db.session import get_async_db, get_session_factory  # noqa: E402
from services.analytics_service.app.main import app as analytics_app  # noqa: E402
from services.analytics_service.routers.analytics import get_clock  # noqa: E402
from services.cards_service.app.main import app as cards_app  # noqa: E402
from services.payments_service.app.main import app as payments_app  # noqa: E402
from services.store_service.app.main import app as store_app  # noqa: E402

# Import all models so metadata includes every table
from services.payments_service import models as _payment_models  # noqa: F401, E402


class AuthState:
    """Who the overridden get_current_user returns; None means anonymous."""

    def __init__(self, user: Optional[AuthUser]):
        self.user = user

    def login(self, user_id: str, email: Optional[str] = None, role: str = "authenticated"):
        self.user = AuthUser(sub=user_id, email=email or f"{user_id}@example.com", role=role)
        return self.user

    def logout(self):
        self.user = None


class FakeStorage:
    """In-memory stand-in for StorageService."""

    def __init__(self):
        self.uploads: dict[str, bytes] = {}
        self.fail = False

    async def upload_bytes(self, path: str, data: bytes, content_type: str) -> str:
        if self.fail:
            raise RuntimeError("storage unavailable")
        self.uploads[path] = data
        return f"https://storage.tapcard.test/{path}"


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest_asyncio.fixture
async def test_engine():
    """Fresh schema per test on the SQLite file shared with the app engine."""
    engine = create_async_engine(settings.DATABASE_URL, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session shared by the test body and the app under test."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def auth() -> AuthState:
    return AuthState(AuthUser(sub="user-owner", email="owner@example.com"))


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(utc_now())


def _install_overrides(app, db_session, session_factory, auth, storage, clock):
    async def _current_user():
        if auth.user is None:
            raise UnauthorizedError("Authentication required")
        return auth.user

    app.dependency_overrides[get_async_db] = lambda: db_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_current_user] = _current_user
    app.dependency_overrides[get_storage_service] = lambda: storage
    app.dependency_overrides[get_clock] = lambda: clock


async def _client_for(app, db_session, session_factory, auth, storage, clock):
    _install_overrides(app, db_session, session_factory, auth, storage, clock)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def cards_client(db_session, session_factory, auth, storage, clock):
    async for ac in _client_for(cards_app, db_session, session_factory, auth, storage, clock):
        yield ac


@pytest_asyncio.fixture
async def analytics_client(db_session, session_factory, auth, storage, clock):
    async for ac in _client_for(
        analytics_app, db_session, session_factory, auth, storage, clock
    ):
        yield ac


@pytest_asyncio.fixture
async def store_client(db_session, session_factory, auth, storage, clock):
    async for ac in _client_for(store_app, db_session, session_factory, auth, storage, clock):
        yield ac


@pytest_asyncio.fixture
async def payments_client(db_session, session_factory, auth, storage, clock):
    async for ac in _client_for(
        payments_app, db_session, session_factory, auth, storage, clock
    ):
        yield ac
