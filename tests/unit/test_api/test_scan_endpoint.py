"""Tests for GET /api/v1/scan."""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from restaurant_hub.config import Settings
from restaurant_hub.errors import BackingStoreFailure
from restaurant_hub.scan_tokens import ScanTokenService


class TestScan:
    @pytest.mark.asyncio
    async def test_issues_token_for_host_tenant(
        self,
        client: AsyncClient,
        tokens: ScanTokenService,
        tenant_rows: dict[str, MagicMock],
    ) -> None:
        response = await client.get("/api/v1/scan")

        assert response.status_code == 200
        data = response.json()
        assert data["tenant"] == {
            "id": str(tenant_rows["acme"].id),
            "slug": "acme",
            "name": "Acme Diner",
        }
        assert datetime.fromisoformat(data["expires_at"]).minute == 10
        assert await tokens.validate_only(data["token"], "acme") is True
        assert await tokens.validate_only(data["token"], "beta") is False

    @pytest.mark.asyncio
    async def test_each_scan_gets_fresh_token(self, client: AsyncClient) -> None:
        first = (await client.get("/api/v1/scan")).json()["token"]
        second = (await client.get("/api/v1/scan")).json()["token"]
        assert first != second

    @pytest.mark.asyncio
    async def test_routing_header_selects_tenant(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/v1/scan", headers={"X-Tenant-Subdomain": "beta"}
        )
        assert response.json()["tenant"]["slug"] == "beta"

    @pytest.mark.asyncio
    async def test_dev_loopback_host(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/v1/scan", headers={"host": "acme.localhost:3000"}
        )
        assert response.status_code == 200
        assert response.json()["tenant"]["slug"] == "acme"

    @pytest.mark.asyncio
    async def test_explicit_slug_fallback(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/v1/scan", params={"slug": "beta"}, headers={"host": "localhost:8000"}
        )
        assert response.json()["tenant"]["slug"] == "beta"

    @pytest.mark.asyncio
    async def test_unresolvable_host_is_400(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/v1/scan", headers={"host": "admin.example.com"}
        )
        assert response.status_code == 400
        assert response.json() == {
            "detail": "Tenant could not be resolved from request"
        }

    @pytest.mark.asyncio
    async def test_unknown_tenant_is_404(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/v1/scan", headers={"host": "ghost.example.com"}
        )
        assert response.status_code == 404
        assert response.json() == {"detail": "Restaurant not found"}

    @pytest.mark.asyncio
    async def test_no_cookie_when_disabled(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/scan")
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_store_failure_is_500(
        self, client: AsyncClient, tokens: ScanTokenService, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(
            tokens, "issue", AsyncMock(side_effect=BackingStoreFailure("db down"))
        )
        response = await client.get("/api/v1/scan")

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}


class TestScanWithCookies:
    @pytest.fixture()
    def api_settings(self) -> Settings:
        return Settings(
            root_domain="example.com", scan_cookies_enabled=True, _env_file=None
        )

    @pytest.mark.asyncio
    async def test_sets_cookie_and_returns_body_token(
        self, client: AsyncClient
    ) -> None:
        response = await client.get("/api/v1/scan")

        assert response.status_code == 200
        cookie = response.headers["set-cookie"]
        token = response.json()["token"]
        assert cookie.startswith(f"scan_token={token}")
        assert "HttpOnly" in cookie
        assert "Max-Age=600" in cookie
        assert "samesite=lax" in cookie.lower()
