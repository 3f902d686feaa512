"""Build the scan token service from settings."""

from __future__ import annotations

from datetime import timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from restaurant_hub.config import ScanTokenBackend, Settings
from restaurant_hub.scan_tokens.service import ScanTokenService
from restaurant_hub.scan_tokens.store import InMemoryScanTokenStore, ScanTokenStore
from restaurant_hub.storage.scan_token_repository import SqlScanTokenStore

logger = structlog.get_logger()


def create_scan_token_service(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> ScanTokenService:
    """Create a ScanTokenService on the configured backend.

    Args:
        settings: Application settings (backend and TTL).
        session_factory: Used by the database backend; each token
            operation opens its own short transaction.
    """
    store: ScanTokenStore
    if settings.scan_token_backend == ScanTokenBackend.MEMORY:
        if settings.is_prod:
            logger.warning(
                "scan_token_memory_backend_in_production",
                hint="tokens are not shared between instances",
            )
        store = InMemoryScanTokenStore()
    else:
        store = SqlScanTokenStore(session_factory)

    return ScanTokenService(
        store,
        ttl=timedelta(seconds=settings.scan_token_ttl_seconds),
    )
