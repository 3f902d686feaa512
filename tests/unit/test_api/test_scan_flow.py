"""End-to-end scan, comment, replay through the HTTP surface."""

import asyncio
import uuid
from collections.abc import Iterator
from datetime import UTC, datetime
from unittest.mock import MagicMock, patch

import pytest
from httpx import AsyncClient

from restaurant_hub.storage.repositories import CommentRepository

TOKEN_ERROR = {"detail": "Invalid or expired scan token. Please scan QR code again."}


def _saved(**kwargs: object) -> MagicMock:
    comment = MagicMock()
    comment.id = uuid.uuid4()
    comment.created_at = datetime.now(UTC)
    return comment


@pytest.fixture()
def mock_create() -> Iterator[MagicMock]:
    with patch.object(CommentRepository, "create", side_effect=_saved) as mock:
        yield mock


class TestScanFlow:
    @pytest.mark.asyncio
    async def test_scan_comment_replay(
        self, client: AsyncClient, mock_create: MagicMock
    ) -> None:
        token = (await client.get("/api/v1/scan")).json()["token"]

        check = await client.get(
            "/api/v1/validate-scan-token", headers={"X-Scan-Token": token}
        )
        assert check.json() == {"valid": True}

        first = await client.post(
            "/api/v1/comments", json={"comment_text": "Great", "scan_token": token}
        )
        assert first.status_code == 201

        replay = await client.post(
            "/api/v1/comments", json={"comment_text": "Again", "scan_token": token}
        )
        assert replay.status_code == 401
        assert replay.json() == TOKEN_ERROR

        assert mock_create.await_count == 1

    @pytest.mark.asyncio
    async def test_token_from_one_restaurant_fails_at_another(
        self, client: AsyncClient, mock_create: MagicMock
    ) -> None:
        token = (await client.get("/api/v1/scan")).json()["token"]

        response = await client.post(
            "/api/v1/comments",
            json={"comment_text": "hi", "scan_token": token},
            headers={"host": "beta.example.com"},
        )

        assert response.status_code == 401
        mock_create.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_submissions_single_comment(
        self, client: AsyncClient, mock_create: MagicMock
    ) -> None:
        token = (await client.get("/api/v1/scan")).json()["token"]

        responses = await asyncio.gather(
            *(
                client.post(
                    "/api/v1/comments",
                    json={"comment_text": f"c{i}", "scan_token": token},
                )
                for i in range(10)
            )
        )

        statuses = sorted(r.status_code for r in responses)
        assert statuses == [201] + [401] * 9
        assert mock_create.await_count == 1
