"""Tests for tenant and comment repositories."""

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from restaurant_hub.errors import BackingStoreFailure
from restaurant_hub.storage.orm import Comment, Tenant
from restaurant_hub.storage.repositories import CommentRepository, TenantRepository


def _mock_session() -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    return session


class TestTenantRepository:
    async def test_get_by_slug_found(self) -> None:
        session = _mock_session()
        tenant = MagicMock(spec=Tenant)
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = tenant
        session.execute.return_value = mock_result

        assert await TenantRepository(session).get_by_slug("acme") is tenant

    async def test_query_filters_active_and_lowercases(self) -> None:
        session = _mock_session()
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = None
        session.execute.return_value = mock_result

        assert await TenantRepository(session).get_by_slug("ACME") is None

        stmt = session.execute.call_args.args[0]
        compiled = stmt.compile()
        assert "tenants.is_active" in str(compiled)
        assert "acme" in compiled.params.values()

    async def test_db_error_raises_backing_store_failure(self) -> None:
        session = _mock_session()
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))

        with pytest.raises(BackingStoreFailure):
            await TenantRepository(session).get_by_slug("acme")


class TestCommentRepository:
    async def test_create_sets_tenant_id(self) -> None:
        """create() sets tenant_id from the constructor, flushes, no commit."""
        session = _mock_session()
        tenant_id = uuid.uuid4()
        repo = CommentRepository(session, tenant_id)

        await repo.create(comment_text="Great soup", menu_item_name="Borscht")

        comment: Comment = session.add.call_args[0][0]
        assert isinstance(comment, Comment)
        assert comment.tenant_id == tenant_id
        assert comment.comment_text == "Great soup"
        assert comment.menu_item_name == "Borscht"
        session.flush.assert_awaited_once()
        session.commit.assert_not_awaited()

    async def test_create_failure_raises(self) -> None:
        session = _mock_session()
        session.flush.side_effect = OperationalError("INSERT", {}, Exception("down"))

        with pytest.raises(BackingStoreFailure):
            await CommentRepository(session, uuid.uuid4()).create(comment_text="x")

    async def test_list_all_scoped(self) -> None:
        session = _mock_session()
        tenant_id = uuid.uuid4()
        comment = MagicMock(spec=Comment)
        comment.created_at = datetime.now(UTC)
        mock_result = MagicMock()
        mock_result.scalars.return_value.all.return_value = [comment]
        session.execute.return_value = mock_result

        result = await CommentRepository(session, tenant_id).list_all(limit=5)

        assert result == [comment]
        stmt = session.execute.call_args.args[0]
        assert tenant_id in stmt.compile().params.values()

    async def test_count(self) -> None:
        session = _mock_session()
        mock_result = MagicMock()
        mock_result.scalar_one.return_value = 3
        session.execute.return_value = mock_result

        assert await CommentRepository(session, uuid.uuid4()).count() == 3
