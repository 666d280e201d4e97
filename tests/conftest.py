"""테스트 인프라 — 임시 DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure — Temporary database, session, and httpx client fixtures.
Each test gets a fresh schema: an aiosqlite file under tmp_path by default,
or the database named by TEST_DATABASE_URL (e.g. a throwaway PostgreSQL).
"""

import os
from collections.abc import AsyncGenerator
from datetime import date

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import settings
from app.database import Base, get_db
from app.main import app
from app.models import *  # noqa: F401,F403 — register all models with metadata
from app.utils.jwt import create_access_token

# ---------------------------------------------------------------------------
# 테스트 DB 설정
# ---------------------------------------------------------------------------
TEST_DATABASE_URL: str | None = os.environ.get("TEST_DATABASE_URL")

# 2025-03-02 는 일요일 — Sunday, first day of the test week
WEEK_START: date = date(2025, 3, 2)
WEEK_END: date = date(2025, 3, 8)

API: str = "/api/v1/admin"


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진. 매 테스트마다 스키마를 새로 만듭니다."""
    url: str = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    eng = create_async_engine(url, echo=False)

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """업로드 임시 디렉터리를 테스트 전용 경로로 바꿉니다."""
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", path)
    return path


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션을 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
async def _make_store(db: AsyncSession, name: str):
    from app.models.store import Store
    s = Store(name=name, address="123 Test St")
    db.add(s)
    await db.flush()
    await db.refresh(s)
    return s


async def _make_roles(db: AsyncSession, store) -> dict:
    from app.models.user import Role
    result = {}
    for name, level in [("owner", 1), ("general_manager", 2), ("supervisor", 3), ("staff", 4)]:
        role = Role(store_id=store.id, name=name, level=level)
        db.add(role)
        await db.flush()
        await db.refresh(role)
        result[name] = role
    return result


async def _make_user(db: AsyncSession, store, role, username: str, full_name: str):
    from app.models.user import User
    user = User(
        store_id=store.id,
        role_id=role.id,
        username=username,
        full_name=full_name,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def store(db: AsyncSession):
    """테스트 매장을 생성합니다."""
    return await _make_store(db, "Test Store")


@pytest_asyncio.fixture
async def roles(db: AsyncSession, store):
    """기본 4개 역할을 생성합니다."""
    return await _make_roles(db, store)


@pytest_asyncio.fixture
async def manager_user(db: AsyncSession, store, roles):
    """GM 사용자를 생성합니다."""
    return await _make_user(db, store, roles["general_manager"], "manager", "Test Manager")


@pytest_asyncio.fixture
async def supervisor_user(db: AsyncSession, store, roles):
    """감독자 사용자를 생성합니다."""
    return await _make_user(db, store, roles["supervisor"], "supervisor", "Test Supervisor")


@pytest_asyncio.fixture
async def staff_user(db: AsyncSession, store, roles):
    """스태프 사용자를 생성합니다."""
    return await _make_user(db, store, roles["staff"], "staff", "Test Staff")


@pytest_asyncio.fixture
async def other_store_manager(db: AsyncSession):
    """다른 매장의 GM을 생성합니다."""
    other = await _make_store(db, "Other Store")
    other_roles = await _make_roles(db, other)
    return await _make_user(db, other, other_roles["general_manager"], "other", "Other Manager")


@pytest_asyncio.fixture
async def catalog(db: AsyncSession, store):
    """레거시 기본 포지션 카탈로그를 매장에 채웁니다."""
    from app.services.default_position_service import default_position_service
    return await default_position_service.seed_legacy_catalog(db, store.id)


def make_token(user) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return create_access_token({
        "sub": str(user.id),
        "store": str(user.store_id),
    })


@pytest.fixture
def manager_token(manager_user) -> str:
    return make_token(manager_user)


@pytest.fixture
def supervisor_token(supervisor_user) -> str:
    return make_token(supervisor_user)


@pytest.fixture
def staff_token(staff_user) -> str:
    return make_token(staff_user)


@pytest.fixture
def other_token(other_store_manager) -> str:
    return make_token(other_store_manager)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def create_week(client: AsyncClient, token: str, **overrides) -> dict:
    """테스트 주간 스케줄을 생성하고 응답 JSON을 반환합니다."""
    payload = {
        "week_start_date": WEEK_START.isoformat(),
        "week_end_date": WEEK_END.isoformat(),
        **overrides,
    }
    res = await client.post(f"{API}/schedules", json=payload, headers=auth_header(token))
    assert res.status_code == 201, res.text
    return res.json()
