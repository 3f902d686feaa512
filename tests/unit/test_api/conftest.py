"""Fixtures for API tests: real tenant resolution over mocked storage."""

import uuid
from collections.abc import AsyncGenerator, Iterator
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from restaurant_hub.api import throttle
from restaurant_hub.api.app import app
from restaurant_hub.api.deps import get_scan_token_service, get_session, get_settings
from restaurant_hub.config import Settings
from restaurant_hub.scan_tokens import InMemoryScanTokenStore, ScanTokenService
from restaurant_hub.storage.repositories import TenantRepository
from restaurant_hub.tenancy.rate_limiter import InMemoryRateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def make_tenant_row(slug: str, name: str) -> MagicMock:
    row = MagicMock()
    row.id = uuid.uuid4()
    row.slug = slug
    row.name = name
    return row


@pytest.fixture()
def tenant_rows() -> dict[str, MagicMock]:
    """Active tenants known to the mocked tenant store."""
    return {
        "acme": make_tenant_row("acme", "Acme Diner"),
        "beta": make_tenant_row("beta", "Beta Bistro"),
    }


@pytest.fixture()
def api_settings() -> Settings:
    return Settings(root_domain="example.com", _env_file=None)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def tokens(clock: FakeClock) -> ScanTokenService:
    return ScanTokenService(InMemoryScanTokenStore(), clock=clock)


@pytest.fixture()
def mock_session() -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture(autouse=True)
def _fresh_rate_limiter(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(throttle, "rate_limiter", InMemoryRateLimiter(60))


@pytest.fixture()
def _patch_tenant_lookup(tenant_rows: dict[str, MagicMock]) -> Iterator[AsyncMock]:
    async def lookup(slug: str) -> MagicMock | None:
        return tenant_rows.get(slug)

    with patch.object(
        TenantRepository, "get_by_slug", side_effect=lookup
    ) as mock_lookup:
        yield mock_lookup


@pytest.fixture()
async def client(
    _patch_tenant_lookup: AsyncMock,
    mock_session: AsyncMock,
    api_settings: Settings,
    tokens: ScanTokenService,
) -> AsyncGenerator[AsyncClient]:
    """Client addressing tenant ``acme`` by host."""
    app.dependency_overrides[get_session] = lambda: mock_session
    app.dependency_overrides[get_settings] = lambda: api_settings
    app.dependency_overrides[get_scan_token_service] = lambda: tokens
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://acme.example.com",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
