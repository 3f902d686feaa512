"""Repositories for tenant and comment persistence.

Database errors are re-raised as ``BackingStoreFailure`` so the API layer
can tell a broken store apart from a missing tenant.
"""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_hub.errors import BackingStoreFailure
from restaurant_hub.storage.orm import Comment, Tenant


class TenantRepository:
    """Read-only tenant lookups used during request resolution."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_slug(self, slug: str) -> Tenant | None:
        """Get an active tenant by slug.

        Args:
            slug: Tenant slug; compared lowercase.

        Returns:
            Tenant if found and active, None otherwise.

        Raises:
            BackingStoreFailure: the query failed.
        """
        stmt = select(Tenant).where(
            Tenant.slug == slug.lower(),
            Tenant.is_active.is_(True),
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            msg = f"Tenant lookup failed for slug '{slug}'"
            raise BackingStoreFailure(msg) from exc
        return result.scalar_one_or_none()


class CommentRepository:
    """Tenant-scoped repository for public comments.

    All queries are automatically filtered by tenant_id to ensure
    data isolation between tenants.
    """

    def __init__(self, session: AsyncSession, tenant_id: uuid.UUID) -> None:
        self._session = session
        self._tenant_id = tenant_id

    async def create(
        self,
        *,
        comment_text: str,
        menu_item_name: str | None = None,
    ) -> Comment:
        """Create a comment for the current tenant.

        Flushes but does not commit; the caller owns the transaction.

        Raises:
            BackingStoreFailure: the insert failed.
        """
        comment = Comment(
            tenant_id=self._tenant_id,
            comment_text=comment_text,
            menu_item_name=menu_item_name,
        )
        self._session.add(comment)
        try:
            await self._session.flush()
            await self._session.refresh(comment)
        except SQLAlchemyError as exc:
            msg = f"Failed to save comment for tenant {self._tenant_id}"
            raise BackingStoreFailure(msg) from exc
        return comment

    async def list_all(self, *, limit: int = 50, offset: int = 0) -> list[Comment]:
        """List comments for the current tenant, newest first."""
        stmt = (
            select(Comment)
            .where(Comment.tenant_id == self._tenant_id)
            .order_by(Comment.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            msg = f"Failed to list comments for tenant {self._tenant_id}"
            raise BackingStoreFailure(msg) from exc
        return list(result.scalars().all())

    async def count(self) -> int:
        """Count comments for the current tenant."""
        stmt = (
            select(func.count())
            .select_from(Comment)
            .where(Comment.tenant_id == self._tenant_id)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            msg = f"Failed to count comments for tenant {self._tenant_id}"
            raise BackingStoreFailure(msg) from exc
        return result.scalar_one()
