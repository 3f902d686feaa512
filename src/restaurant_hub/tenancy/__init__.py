"""Tenant resolution from inbound requests.

Note: the FastAPI dependencies that combine resolution with the database
and rate limiting live in ``api.deps``; this package has no web imports.
"""

from restaurant_hub.tenancy.context import TenantContext
from restaurant_hub.tenancy.host_resolver import HostResolver
from restaurant_hub.tenancy.resolver import (
    RESERVED_WORDS,
    HostType,
    ResolverConfig,
    detect_host_type,
    resolve_slug,
)

__all__ = [
    "RESERVED_WORDS",
    "HostResolver",
    "HostType",
    "ResolverConfig",
    "TenantContext",
    "detect_host_type",
    "resolve_slug",
]
