"""FastAPI dependency injection."""

from __future__ import annotations

from typing import cast

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_hub.comment_gate import CommentGate
from restaurant_hub.config import Settings, get_settings
from restaurant_hub.scan_tokens.service import ScanTokenService
from restaurant_hub.storage.database import get_session
from restaurant_hub.storage.repositories import TenantRepository
from restaurant_hub.tenancy.context import TenantContext
from restaurant_hub.tenancy.host_resolver import HostResolver

__all__ = [
    "get_comment_gate",
    "get_current_tenant",
    "get_host_resolver",
    "get_scan_token_service",
    "get_session",
    "get_settings",
]

_get_session = Depends(get_session)
_get_settings = Depends(get_settings)


def get_host_resolver(settings: Settings = _get_settings) -> HostResolver:
    return HostResolver.from_settings(settings)


_get_host_resolver = Depends(get_host_resolver)


async def get_current_tenant(
    request: Request,
    session: AsyncSession = _get_session,
    resolver: HostResolver = _get_host_resolver,
    slug: str | None = Query(
        default=None,
        description="Explicit tenant slug, used only when the host carries none.",
    ),
) -> TenantContext:
    """Resolve the tenant addressed by the request host and headers.

    Raises:
        ResolutionFailure: no tenant signal in the request (400).
        TenantNotFound: slug resolved but no active tenant (404).
        BackingStoreFailure: tenant lookup failed (500).
    """
    return await resolver.resolve_tenant(
        request.headers.get("host", ""),
        dict(request.headers),
        TenantRepository(session),
        explicit_slug=slug,
    )


async def get_scan_token_service(request: Request) -> ScanTokenService:
    """Retrieve ScanTokenService from app state.

    Initialized during lifespan startup.
    """
    return cast(ScanTokenService, request.app.state.scan_token_service)


_get_scan_token_service = Depends(get_scan_token_service)


async def get_comment_gate(
    tokens: ScanTokenService = _get_scan_token_service,
    settings: Settings = _get_settings,
) -> CommentGate:
    return CommentGate(tokens, policy=settings.scan_token_consume_policy)
