"""테스트 인프라 — 임시 DB, 세션, httpx 클라이언트, 도메인 픽스처.

Test infrastructure — Temporary database, session, and httpx client fixtures.
Uses TEST_DATABASE_URL when set (e.g. a throwaway PostgreSQL database),
otherwise a per-test SQLite file through aiosqlite. The schema is created
before each test and dropped after it.
"""

import hashlib
import os
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from typing import Any, Sequence

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from app.config import settings
from app.database import Base, get_db
from app.main import app
from app.models import Asset, Exif, Partner, Person, Tag, User  # 모든 모델 등록 (registers every table)
from app.repositories.search_repository import search_repository
from app.services.job_service import job_queue
from app.services.machine_learning_service import machine_learning_service
from app.utils.jwt import create_access_token
from app.utils.password import hash_password

BASE_TIME: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진. 스키마를 생성하고 종료 시 삭제합니다."""
    url: str = os.environ.get("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    eng = create_async_engine(url, echo=False, poolclass=NullPool)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    async with session_factory() as session:
        yield session
        await session.rollback()


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


@pytest.fixture(autouse=True)
def clean_job_queue(session_factory: async_sessionmaker[AsyncSession]):
    """싱글턴 작업 큐를 테스트 DB에 연결하고 테스트 후 비웁니다."""
    original = job_queue.session_factory
    job_queue.session_factory = session_factory
    job_queue.clear()
    yield job_queue
    job_queue.clear()
    job_queue.session_factory = original


@pytest.fixture
def ml_server():
    """머신러닝 서버 모의 — Mock inference server answering /predict.

    ``ml_server["embedding"]`` is returned for every request; requests are
    recorded in ``ml_server["requests"]``. Set ``ml_server["status"]`` to
    simulate a failure.
    """
    state: dict[str, Any] = {"embedding": [1.0, 0.0, 0.0], "status": 200, "requests": []}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        if state["status"] != 200:
            return httpx.Response(state["status"], text="model crashed")
        return httpx.Response(200, json=state["embedding"])

    machine_learning_service.use_client(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    yield state
    machine_learning_service.use_client(None)


@pytest.fixture
def ml_settings(monkeypatch):
    """머신러닝/CLIP 기능을 켠 설정 — Settings with ML and CLIP enabled."""
    monkeypatch.setattr(settings, "SEARCH_ENABLED", True)
    monkeypatch.setattr(settings, "MACHINE_LEARNING_ENABLED", True)
    monkeypatch.setattr(settings, "CLIP_ENABLED", True)
    monkeypatch.setattr(settings, "MACHINE_LEARNING_URL", "http://ml.test")
    monkeypatch.setattr(settings, "DUPLICATE_DETECTION_MAX_DISTANCE", 0.01)
    return settings


# ---------------------------------------------------------------------------
# 헬퍼: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
async def make_user(
    db: AsyncSession,
    email: str,
    password: str = "password123",
    name: str = "",
    is_admin: bool = False,
) -> User:
    user = User(
        email=email,
        name=name or email.split("@")[0],
        password_hash=hash_password(password),
        is_admin=is_admin,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def make_asset(
    db: AsyncSession,
    owner: User,
    file_name: str = "IMG_0001.jpg",
    taken_at: datetime | None = None,
    exif: dict[str, Any] | None = None,
    embedding: Sequence[float] | None = None,
    tags: Sequence[Tag] = (),
    **fields: Any,
) -> Asset:
    """에셋을 생성합니다 (EXIF, 임베딩, 태그 선택).

    ``exif`` is attached through the relationship so it counts as loaded.
    """
    taken_at = taken_at or BASE_TIME
    path: str = f"/library/{owner.id}/{file_name}"
    asset = Asset(
        owner_id=owner.id,
        device_asset_id=file_name,
        original_path=path,
        original_file_name=file_name,
        checksum=hashlib.sha1(f"{owner.id}/{file_name}".encode()).digest(),
        preview_path=f"/thumbs/{owner.id}/{file_name}.jpeg",
        thumbnail_path=f"/thumbs/{owner.id}/{file_name}.webp",
        file_created_at=taken_at,
        file_modified_at=taken_at,
        local_date_time=taken_at,
        **fields,
    )
    asset.exif_info = Exif(**exif) if exif is not None else None
    asset.tags = list(tags)
    db.add(asset)
    await db.flush()
    if embedding is not None:
        await search_repository.upsert_embedding(db, asset.id, embedding)
    return asset


async def make_person(db: AsyncSession, owner: User, name: str, is_hidden: bool = False) -> Person:
    person = Person(owner_id=owner.id, name=name, is_hidden=is_hidden)
    db.add(person)
    await db.flush()
    return person


async def make_tag(db: AsyncSession, owner: User, name: str) -> Tag:
    tag = Tag(user_id=owner.id, name=name)
    db.add(tag)
    await db.flush()
    return tag


async def make_partner(db: AsyncSession, shared_by: User, shared_with: User, in_timeline: bool = True) -> Partner:
    partner = Partner(shared_by_id=shared_by.id, shared_with_id=shared_with.id, in_timeline=in_timeline)
    db.add(partner)
    await db.flush()
    return partner


def hours(n: int) -> datetime:
    """BASE_TIME에서 n시간 뒤 — BASE_TIME shifted by n hours."""
    return BASE_TIME + timedelta(hours=n)


# ---------------------------------------------------------------------------
# 사용자 픽스처
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def admin_user(db: AsyncSession) -> User:
    """관리자 사용자를 생성합니다."""
    return await make_user(db, "admin@test.com", "admin123!", name="Admin", is_admin=True)


@pytest_asyncio.fixture
async def owner_user(db: AsyncSession) -> User:
    """일반 사용자(앨범 소유자)를 생성합니다."""
    return await make_user(db, "owner@test.com", "owner123!", name="Owner")


@pytest_asyncio.fixture
async def other_user(db: AsyncSession) -> User:
    """두 번째 일반 사용자를 생성합니다."""
    return await make_user(db, "other@test.com", "other123!", name="Other")


@pytest_asyncio.fixture
async def third_user(db: AsyncSession) -> User:
    """세 번째 일반 사용자를 생성합니다."""
    return await make_user(db, "third@test.com", "third123!", name="Third")


def make_token(user: User) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return create_access_token({"sub": str(user.id), "email": user.email, "admin": user.is_admin})


@pytest.fixture
def admin_token(admin_user: User) -> str:
    return make_token(admin_user)


@pytest.fixture
def owner_token(owner_user: User) -> str:
    return make_token(owner_user)


@pytest.fixture
def other_token(other_user: User) -> str:
    return make_token(other_user)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
