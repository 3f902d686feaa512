"""Tests for GET /api/v1/validate-scan-token."""

import pytest
from httpx import AsyncClient

from restaurant_hub.config import Settings
from restaurant_hub.scan_tokens import ScanTokenService


class TestValidateScanToken:
    @pytest.mark.asyncio
    async def test_valid_header_token(
        self, client: AsyncClient, tokens: ScanTokenService
    ) -> None:
        issued = await tokens.issue("acme")

        response = await client.get(
            "/api/v1/validate-scan-token", headers={"X-Scan-Token": issued.token}
        )

        assert response.status_code == 200
        assert response.json() == {"valid": True}

    @pytest.mark.asyncio
    async def test_does_not_consume(
        self, client: AsyncClient, tokens: ScanTokenService
    ) -> None:
        issued = await tokens.issue("acme")
        for _ in range(3):
            await client.get(
                "/api/v1/validate-scan-token", headers={"X-Scan-Token": issued.token}
            )

        assert await tokens.validate_and_consume(issued.token, "acme") is True

    @pytest.mark.asyncio
    async def test_no_token_is_invalid(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/validate-scan-token")
        assert response.status_code == 200
        assert response.json() == {"valid": False}

    @pytest.mark.asyncio
    async def test_other_tenant_is_invalid(
        self, client: AsyncClient, tokens: ScanTokenService
    ) -> None:
        issued = await tokens.issue("acme")

        response = await client.get(
            "/api/v1/validate-scan-token",
            headers={"X-Scan-Token": issued.token, "host": "beta.example.com"},
        )

        assert response.json() == {"valid": False}

    @pytest.mark.asyncio
    async def test_consumed_is_invalid(
        self, client: AsyncClient, tokens: ScanTokenService
    ) -> None:
        issued = await tokens.issue("acme")
        await tokens.validate_and_consume(issued.token, "acme")

        response = await client.get(
            "/api/v1/validate-scan-token", headers={"X-Scan-Token": issued.token}
        )

        assert response.json() == {"valid": False}

    @pytest.mark.asyncio
    async def test_unknown_tenant_is_404(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/v1/validate-scan-token",
            headers={"X-Scan-Token": "whatever", "host": "ghost.example.com"},
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_not_rate_limited(
        self, client: AsyncClient, api_settings: Settings
    ) -> None:
        api_settings.public_rate_limit_per_minute = 1
        for _ in range(3):
            response = await client.get("/api/v1/validate-scan-token")
            assert response.status_code == 200


class TestValidateScanTokenWithCookies:
    @pytest.fixture()
    def api_settings(self) -> Settings:
        return Settings(
            root_domain="example.com", scan_cookies_enabled=True, _env_file=None
        )

    @pytest.mark.asyncio
    async def test_reads_cookie(self, client: AsyncClient) -> None:
        await client.get("/api/v1/scan")

        response = await client.get("/api/v1/validate-scan-token")

        assert response.json() == {"valid": True}
