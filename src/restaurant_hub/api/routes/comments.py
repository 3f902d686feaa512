"""Public comment endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_hub.api.deps import (
    get_comment_gate,
    get_current_tenant,
    get_session,
    get_settings,
)
from restaurant_hub.api.schemas import (
    CommentCreateRequest,
    CommentCreateResponse,
    CommentListResponse,
    CommentResponse,
)
from restaurant_hub.api.throttle import rate_limited_tenant
from restaurant_hub.comment_gate import CommentGate, extract_scan_token
from restaurant_hub.config import Settings
from restaurant_hub.storage.repositories import CommentRepository
from restaurant_hub.tenancy.context import TenantContext

router = APIRouter(tags=["comments"])

SessionDep = Annotated[AsyncSession, Depends(get_session)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
GateDep = Annotated[CommentGate, Depends(get_comment_gate)]
TenantDep = Annotated[TenantContext, Depends(get_current_tenant)]
ThrottledTenantDep = Annotated[TenantContext, Depends(rate_limited_tenant)]


@router.post("/comments", status_code=201)
async def create_comment(
    body: CommentCreateRequest,
    request: Request,
    response: Response,
    tenant: ThrottledTenantDep,
    session: SessionDep,
    gate: GateDep,
    settings: SettingsDep,
    x_scan_token: Annotated[str | None, Header()] = None,
) -> CommentCreateResponse:
    """Post an anonymous comment, authorized by one scan token.

    The token is read from the ``scan_token`` cookie (when cookie delivery
    is enabled), else the ``scan_token`` body field, else the
    ``X-Scan-Token`` header. Any token failure is a uniform 401.
    """
    token = extract_scan_token(
        cookie=request.cookies.get(settings.scan_cookie_name),
        body_token=body.scan_token,
        header=x_scan_token,
        cookies_enabled=settings.scan_cookies_enabled,
    )
    comment = await gate.submit(
        tenant=tenant,
        session=session,
        comment_text=body.comment_text,
        menu_item_name=body.menu_item_name,
        token=token,
    )
    if settings.scan_cookies_enabled:
        response.delete_cookie(
            settings.scan_cookie_name, domain=settings.scan_cookie_domain
        )
    return CommentCreateResponse.model_validate(comment)


@router.get("/comments")
async def list_comments(
    tenant: TenantDep,
    session: SessionDep,
    limit: int = Query(
        default=20,
        ge=1,
        le=100,
        description="Maximum number of comments to return (1-100).",
    ),
    offset: int = Query(
        default=0,
        ge=0,
        description="Number of comments to skip for pagination.",
    ),
) -> CommentListResponse:
    """List the resolved restaurant's comments, newest first."""
    repo = CommentRepository(session, tenant.tenant_id)
    comments = await repo.list_all(limit=limit, offset=offset)
    total = await repo.count()
    return CommentListResponse(
        items=[CommentResponse.model_validate(c) for c in comments],
        total=total,
        limit=limit,
        offset=offset,
    )
