"""Shared fixtures for integration tests requiring live PostgreSQL."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from restaurant_hub.config import get_settings
from restaurant_hub.storage.orm import ScanToken, Tenant


@pytest.fixture()
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Async engine from settings, sized for concurrent consume tests."""
    engine = create_async_engine(
        get_settings().database_url,
        pool_size=10,
        max_overflow=10,
    )
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(
    async_engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture()
async def db_session(
    async_engine: AsyncEngine,
) -> AsyncGenerator[AsyncSession]:
    """Session wrapped in a transaction, rolled back after the test.

    For repository tests that ``flush()`` but never ``commit()``.
    """
    async with async_engine.connect() as conn:
        trans = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)

        yield session

        await session.close()
        await trans.rollback()


@pytest.fixture()
async def seed_tenant(db_session: AsyncSession) -> Tenant:
    tenant = Tenant(slug=f"t-{uuid.uuid4().hex[:10]}", name="Integration Diner")
    db_session.add(tenant)
    await db_session.flush()
    return tenant


@pytest.fixture()
def token_slug() -> str:
    """Unique tenant slug so committed tokens never collide between runs."""
    return f"t-{uuid.uuid4().hex[:10]}"


@pytest.fixture()
async def cleanup_tokens(
    session_factory: async_sessionmaker[AsyncSession],
    token_slug: str,
) -> AsyncGenerator[None]:
    """Delete committed scan tokens for ``token_slug`` after the test."""
    yield
    async with session_factory() as session:
        await session.execute(
            delete(ScanToken).where(ScanToken.tenant_slug == token_slug)
        )
        await session.commit()
