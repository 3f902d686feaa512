"""Scan endpoints: issue and pre-check scan tokens."""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Header, Request, Response

from restaurant_hub.api.deps import (
    get_current_tenant,
    get_scan_token_service,
    get_settings,
)
from restaurant_hub.api.schemas import (
    ScanResponse,
    TenantSummary,
    ValidateScanTokenResponse,
)
from restaurant_hub.api.throttle import rate_limited_tenant
from restaurant_hub.comment_gate import extract_scan_token
from restaurant_hub.config import Settings
from restaurant_hub.scan_tokens.service import ScanTokenService
from restaurant_hub.tenancy.context import TenantContext

logger = structlog.get_logger()

router = APIRouter(tags=["scan"])

TenantDep = Annotated[TenantContext, Depends(get_current_tenant)]
ThrottledTenantDep = Annotated[TenantContext, Depends(rate_limited_tenant)]
TokensDep = Annotated[ScanTokenService, Depends(get_scan_token_service)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


@router.get("/scan")
async def scan(
    tenant: ThrottledTenantDep,
    tokens: TokensDep,
    settings: SettingsDep,
    response: Response,
) -> ScanResponse:
    """Record a QR scan and issue a single-use comment token.

    The token is always returned in the body. When cookie delivery is
    enabled it is also set as a same-site cookie that expires with it.
    """
    issued = await tokens.issue(tenant.slug)

    if settings.scan_cookies_enabled:
        response.set_cookie(
            key=settings.scan_cookie_name,
            value=issued.token,
            max_age=int(tokens.ttl.total_seconds()),
            httponly=True,
            secure=settings.is_prod,
            samesite="lax",
            domain=settings.scan_cookie_domain,
        )

    return ScanResponse(
        token=issued.token,
        expires_at=issued.expires_at,
        tenant=TenantSummary(id=tenant.tenant_id, slug=tenant.slug, name=tenant.name),
    )


@router.get("/validate-scan-token")
async def validate_scan_token(
    request: Request,
    tenant: TenantDep,
    tokens: TokensDep,
    settings: SettingsDep,
    x_scan_token: Annotated[str | None, Header()] = None,
) -> ValidateScanTokenResponse:
    """Check whether the caller holds a usable token. Does not consume it.

    Used by the menu UI to decide whether to show the comment form.
    """
    token = extract_scan_token(
        cookie=request.cookies.get(settings.scan_cookie_name),
        body_token=None,
        header=x_scan_token,
        cookies_enabled=settings.scan_cookies_enabled,
    )
    if token is None:
        return ValidateScanTokenResponse(valid=False)
    return ValidateScanTokenResponse(
        valid=await tokens.validate_only(token, tenant.slug)
    )
