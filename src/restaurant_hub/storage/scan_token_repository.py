"""PostgreSQL-backed scan token store.

Consumption is one conditional ``UPDATE ... WHERE consumed = false``;
the database row lock makes it atomic across processes and instances.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from restaurant_hub.errors import BackingStoreFailure
from restaurant_hub.scan_tokens.models import ScanTokenRecord
from restaurant_hub.storage.orm import ScanToken


def _to_record(row: ScanToken) -> ScanTokenRecord:
    return ScanTokenRecord(
        token=row.token,
        tenant_slug=row.tenant_slug,
        issued_at=row.issued_at,
        expires_at=row.expires_at,
        consumed=row.consumed,
        consumed_at=row.consumed_at,
    )


class SqlScanTokenStore:
    """Scan token store on the ``scan_tokens`` table.

    Each operation runs in its own short transaction, independent of the
    request session, so a consumed token stays consumed even if the gated
    write later rolls back.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def insert(self, record: ScanTokenRecord) -> bool:
        row = ScanToken(
            token=record.token,
            tenant_slug=record.tenant_slug,
            issued_at=record.issued_at,
            expires_at=record.expires_at,
            consumed=record.consumed,
        )
        async with self._session_factory() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                return False
            except SQLAlchemyError as exc:
                msg = "Failed to store scan token"
                raise BackingStoreFailure(msg) from exc
        return True

    async def get(self, token: str) -> ScanTokenRecord | None:
        stmt = select(ScanToken).where(ScanToken.token == token)
        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
            except SQLAlchemyError as exc:
                msg = "Failed to read scan token"
                raise BackingStoreFailure(msg) from exc
            row = result.scalar_one_or_none()
            return _to_record(row) if row is not None else None

    async def consume(self, token: str, tenant_slug: str, now: datetime) -> bool:
        stmt = (
            update(ScanToken)
            .where(
                ScanToken.token == token,
                ScanToken.tenant_slug == tenant_slug,
                ScanToken.consumed.is_(False),
                ScanToken.expires_at >= now,
            )
            .values(consumed=True, consumed_at=now)
        )
        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
                await session.commit()
            except SQLAlchemyError as exc:
                msg = "Failed to consume scan token"
                raise BackingStoreFailure(msg) from exc
        return result.rowcount == 1

    async def purge_expired(self, before: datetime) -> int:
        stmt = delete(ScanToken).where(ScanToken.expires_at < before)
        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
                await session.commit()
            except SQLAlchemyError as exc:
                msg = "Failed to purge expired scan tokens"
                raise BackingStoreFailure(msg) from exc
        return result.rowcount
