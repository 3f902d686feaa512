"""Per-tenant rate limiting for public endpoints."""

from typing import Annotated

from fastapi import Depends

from restaurant_hub.api.deps import get_current_tenant
from restaurant_hub.config import Settings, get_settings
from restaurant_hub.errors import RateLimited
from restaurant_hub.tenancy.context import TenantContext
from restaurant_hub.tenancy.rate_limiter import InMemoryRateLimiter

# Global rate limiter instance (single-process; each instance counts alone)
rate_limiter = InMemoryRateLimiter(window_seconds=60)


async def rate_limited_tenant(
    tenant: Annotated[TenantContext, Depends(get_current_tenant)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TenantContext:
    """Resolve the tenant, then count the request against its public quota.

    Raises:
        RateLimited 429: quota exhausted (response carries Retry-After).
    """
    allowed, retry_after = rate_limiter.check(
        f"tenant:{tenant.slug}", settings.public_rate_limit_per_minute
    )
    if not allowed:
        raise RateLimited(retry_after)
    return tenant
