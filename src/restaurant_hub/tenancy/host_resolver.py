"""Request to tenant resolution: slug resolution plus one tenant lookup."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Protocol

import structlog

from restaurant_hub.config import Settings
from restaurant_hub.errors import ResolutionFailure, TenantNotFound
from restaurant_hub.logging_config import bind_request_context
from restaurant_hub.tenancy.context import TenantContext
from restaurant_hub.tenancy.resolver import (
    ResolverConfig,
    clean_slug,
    slug_from_referer,
    resolve_slug,
)

logger = structlog.get_logger()


class TenantRecord(Protocol):
    id: uuid.UUID
    slug: str
    name: str


class TenantLookup(Protocol):
    """Read-only point lookup of an active tenant by slug."""

    async def get_by_slug(self, slug: str) -> TenantRecord | None: ...


class HostResolver:
    """Identify the tenant an inbound request addresses.

    Pure slug resolution (see ``resolver.resolve_slug``) followed by exactly
    one lookup. The lookup may raise ``BackingStoreFailure``; that error is
    propagated unchanged.
    """

    def __init__(
        self,
        config: ResolverConfig,
        *,
        allow_explicit_slug: bool = False,
        allow_referer_slug: bool = False,
    ):
        self._config = config
        self._allow_explicit_slug = allow_explicit_slug
        self._allow_referer_slug = allow_referer_slug

    @classmethod
    def from_settings(cls, settings: Settings) -> HostResolver:
        config = ResolverConfig(
            root_domain=settings.root_domain,
            admin_host=settings.admin_host,
            domain_map=settings.tenant_domain_map,
        )
        return cls(
            config,
            allow_explicit_slug=settings.allow_explicit_slug,
            allow_referer_slug=settings.is_dev,
        )

    @property
    def config(self) -> ResolverConfig:
        return self._config

    def resolve_slug(
        self,
        hostname: str,
        headers: Mapping[str, str],
        explicit_slug: str | None = None,
    ) -> str | None:
        """Resolve a slug from the request, falling back to ``explicit_slug``.

        The explicit slug (``?slug=``) is consulted only when host-based
        resolution found nothing and the fallback is enabled. In development
        a ``Referer`` of ``http://<slug>.localhost`` is tried last.
        """
        slug = resolve_slug(hostname, headers, self._config)
        if slug is None and self._allow_explicit_slug:
            slug = clean_slug(explicit_slug)
        if slug is None and self._allow_referer_slug:
            referer = next(
                (v for k, v in headers.items() if k.lower() == "referer"), None
            )
            slug = slug_from_referer(referer)
        return slug

    async def resolve_tenant(
        self,
        hostname: str,
        headers: Mapping[str, str],
        lookup: TenantLookup,
        explicit_slug: str | None = None,
    ) -> TenantContext:
        """Resolve the request to a full tenant.

        Raises:
            ResolutionFailure: no slug could be determined.
            TenantNotFound: a slug was found but no active tenant has it.
            BackingStoreFailure: the tenant lookup failed.
        """
        slug = self.resolve_slug(hostname, headers, explicit_slug)
        if slug is None:
            logger.info("tenant_not_resolved", host=hostname)
            raise ResolutionFailure

        tenant = await lookup.get_by_slug(slug)
        if tenant is None:
            logger.info("tenant_not_found", slug=slug)
            raise TenantNotFound(slug)

        bind_request_context(tenant=tenant.slug)
        logger.debug("tenant_resolved", slug=tenant.slug)
        return TenantContext(tenant_id=tenant.id, slug=tenant.slug, name=tenant.name)
