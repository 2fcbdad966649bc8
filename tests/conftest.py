"""Shared pytest fixtures: in-memory database, async test clients, fakes."""

from __future__ import annotations

import hashlib
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from herbarium.auth.dependencies import (
	AuthPrincipal,
	get_api_key_principal,
	get_auth_principal,
	get_current_user,
)
from herbarium.database import get_db
from herbarium.main import app
from herbarium.models import Base, Greenhouse, User
from herbarium.services.plant_service import PlantService

OWNER_UID = "owner-uid-1"


class FakeAsyncSession:
	def __init__(self) -> None:
		self.commit = AsyncMock()
		self.rollback = AsyncMock()
		self.close = AsyncMock()
		self.execute = AsyncMock()


class FakeRedis:
	def __init__(self) -> None:
		self._counter: dict[str, int] = {}
		self.incr = AsyncMock(side_effect=self._incr)
		self.expire = AsyncMock(return_value=True)
		self.ping = AsyncMock(return_value=True)

	async def _incr(self, key: str) -> int:
		value = self._counter.get(key, 0) + 1
		self._counter[key] = value
		return value


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
	cursor = dbapi_connection.cursor()
	cursor.execute("PRAGMA foreign_keys=ON")
	cursor.close()


@pytest.fixture
async def db_engine() -> AsyncGenerator[Any, None]:
	"""Fresh in-memory SQLite schema per test, with ON DELETE CASCADE enforced."""
	engine = create_async_engine(
		"sqlite+aiosqlite:///:memory:",
		connect_args={"check_same_thread": False},
		poolclass=StaticPool,
	)
	event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
	async with engine.begin() as connection:
		await connection.run_sync(Base.metadata.create_all)
	yield engine
	await engine.dispose()


@pytest.fixture
async def db_session(db_engine: Any) -> AsyncGenerator[AsyncSession, None]:
	"""A session over the test schema with the default plant type seeded."""
	factory = async_sessionmaker(db_engine, expire_on_commit=False)
	async with factory() as session:
		await PlantService(session).ensure_default_type()
		await session.flush()
		yield session
		await session.rollback()


@pytest.fixture
async def owner(db_session: AsyncSession) -> User:
	user = User(id=OWNER_UID, display_name="Owner", email="owner@test.local")
	db_session.add(user)
	await db_session.flush()
	return user


@pytest.fixture
async def greenhouse(db_session: AsyncSession, owner: User) -> Greenhouse:
	item = Greenhouse(id=uuid.uuid4(), name="North bay", user_id=owner.id)
	db_session.add(item)
	await db_session.flush()
	return item


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
	"""A lightweight async-session stub for dependency overrides in API tests."""
	return FakeAsyncSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
	return FakeRedis()


@asynccontextmanager
async def _app_client(overrides: dict[Any, Any]) -> AsyncGenerator[AsyncClient, None]:
	app.dependency_overrides.update(overrides)
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan
	try:
		transport = ASGITransport(app=app)
		async with AsyncClient(transport=transport, base_url="http://test") as test_client:
			yield test_client
	finally:
		app.router.lifespan_context = original_lifespan
		app.dependency_overrides.clear()
		app.state.redis = None


@pytest.fixture
async def client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled, DB mocked and the caller signed in as the owner."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	async def override_current_user() -> str:
		return OWNER_UID

	async def override_auth_principal() -> AuthPrincipal:
		return AuthPrincipal(auth_type="firebase", subject=OWNER_UID)

	async def override_api_key_principal() -> AuthPrincipal:
		return AuthPrincipal(auth_type="api_key", subject="device")

	overrides = {
		get_db: override_get_db,
		get_current_user: override_current_user,
		get_auth_principal: override_auth_principal,
		get_api_key_principal: override_api_key_principal,
	}
	async with _app_client(overrides) as test_client:
		yield test_client


@pytest.fixture
async def auth_client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with DB override only (real auth dependencies active)."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	async with _app_client({get_db: override_get_db}) as test_client:
		yield test_client


@pytest.fixture
def api_key_plaintext() -> str:
	return "greenhouse-device-key"


@pytest.fixture
def api_key_sha256(api_key_plaintext: str) -> str:
	return hashlib.sha256(api_key_plaintext.encode("utf-8")).hexdigest()


@pytest.fixture
def now_utc() -> datetime:
	return datetime.now(UTC)
