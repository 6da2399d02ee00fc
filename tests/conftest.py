from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from procurement.core.config import Settings
from procurement.workflow import Role, User

from factories import make_user


@pytest.fixture
def initiator() -> User:
    return make_user(Role.INITIATOR, name="Alice", login="alice")


@pytest.fixture
def purchasing_manager() -> User:
    return make_user(Role.PURCHASING_MANAGER, name="Bob", login="bob")


@pytest.fixture
def accounting_manager() -> User:
    return make_user(Role.ACCOUNTING_MANAGER, name="Carol", login="carol")


@pytest.fixture
def settings() -> Settings:
    return Settings(jwt_secret="test-secret-that-is-long-enough-for-hs256", jwt_expiration_minutes=5)


@pytest_asyncio.fixture
async def engine() -> AsyncEngine:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    return async_sessionmaker(engine, expire_on_commit=False)
