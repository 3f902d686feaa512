"""Scan-gated comment submission.

The only consumer of both tenant resolution and scan tokens: a comment is
written only after the request's token has been consumed for the tenant
the request addresses.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_hub.config import ConsumePolicy
from restaurant_hub.errors import TokenRejected, ValidationFailure
from restaurant_hub.scan_tokens.service import ScanTokenService
from restaurant_hub.storage.orm import Comment
from restaurant_hub.storage.repositories import CommentRepository
from restaurant_hub.tenancy.context import TenantContext

logger = structlog.get_logger()

MAX_COMMENT_LENGTH = 2000
MAX_MENU_ITEM_LENGTH = 200


@dataclass(frozen=True)
class CommentDraft:
    comment_text: str
    menu_item_name: str | None


def extract_scan_token(
    *,
    cookie: str | None,
    body_token: str | None,
    header: str | None,
    cookies_enabled: bool,
) -> str | None:
    """Pick the scan token from the request transports.

    Precedence: cookie (only when cookie delivery is enabled), then the
    request body field, then the ``X-Scan-Token`` header. Blank values
    count as absent.
    """
    candidates = [body_token, header]
    if cookies_enabled:
        candidates.insert(0, cookie)
    for value in candidates:
        if value and value.strip():
            return value.strip()
    return None


def validate_draft(comment_text: str | None, menu_item_name: str | None) -> CommentDraft:
    """Normalize comment input.

    Raises:
        ValidationFailure: missing/blank text or an over-long field.
    """
    text = (comment_text or "").strip()
    if not text:
        raise ValidationFailure("Comment text is required")
    if len(text) > MAX_COMMENT_LENGTH:
        raise ValidationFailure(
            f"Comment text must be at most {MAX_COMMENT_LENGTH} characters"
        )
    item = (menu_item_name or "").strip() or None
    if item is not None and len(item) > MAX_MENU_ITEM_LENGTH:
        raise ValidationFailure(
            f"Menu item name must be at most {MAX_MENU_ITEM_LENGTH} characters"
        )
    return CommentDraft(comment_text=text, menu_item_name=item)


class CommentGate:
    """Perform a comment write at most once per scan token.

    With ``ConsumePolicy.BEFORE_WRITE`` (default) the token is burned before
    the insert, so a failed insert still costs the scan. With
    ``ConsumePolicy.AFTER_WRITE`` the insert is flushed first and committed
    only if consumption then succeeds.
    """

    def __init__(
        self,
        tokens: ScanTokenService,
        *,
        policy: ConsumePolicy = ConsumePolicy.BEFORE_WRITE,
    ) -> None:
        self._tokens = tokens
        self._policy = policy

    async def submit(
        self,
        *,
        tenant: TenantContext,
        session: AsyncSession,
        comment_text: str | None,
        menu_item_name: str | None,
        token: str | None,
    ) -> Comment:
        """Validate input, consume the token and write the comment.

        Input is validated before the token is looked at, so a rejected
        draft never burns a scan.

        Raises:
            ValidationFailure: bad comment input; token untouched.
            TokenRejected: no token, or the token is not valid for ``tenant``.
            BackingStoreFailure: a store failed.
        """
        draft = validate_draft(comment_text, menu_item_name)
        if token is None:
            logger.info("comment_rejected_no_token", tenant=tenant.slug)
            raise TokenRejected

        repo = CommentRepository(session, tenant.tenant_id)
        if self._policy is ConsumePolicy.AFTER_WRITE:
            comment = await self._write_then_consume(repo, session, tenant, draft, token)
        else:
            comment = await self._consume_then_write(repo, session, tenant, draft, token)

        logger.info(
            "comment_created",
            tenant=tenant.slug,
            comment_id=str(comment.id),
            policy=str(self._policy),
        )
        return comment

    async def _consume_then_write(
        self,
        repo: CommentRepository,
        session: AsyncSession,
        tenant: TenantContext,
        draft: CommentDraft,
        token: str,
    ) -> Comment:
        if not await self._tokens.validate_and_consume(token, tenant.slug):
            raise TokenRejected
        try:
            comment = await repo.create(
                comment_text=draft.comment_text,
                menu_item_name=draft.menu_item_name,
            )
            await session.commit()
        except Exception:
            await session.rollback()
            logger.warning("comment_write_failed_token_burned", tenant=tenant.slug)
            raise
        return comment

    async def _write_then_consume(
        self,
        repo: CommentRepository,
        session: AsyncSession,
        tenant: TenantContext,
        draft: CommentDraft,
        token: str,
    ) -> Comment:
        if not await self._tokens.validate_only(token, tenant.slug):
            raise TokenRejected
        try:
            comment = await repo.create(
                comment_text=draft.comment_text,
                menu_item_name=draft.menu_item_name,
            )
            if not await self._tokens.validate_and_consume(token, tenant.slug):
                await session.rollback()
                raise TokenRejected
            await session.commit()
        except TokenRejected:
            raise
        except Exception:
            await session.rollback()
            raise
        return comment
