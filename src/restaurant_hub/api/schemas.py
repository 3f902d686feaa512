"""Request/response schemas for the API layer."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# --- Tenant ---


class TenantSummary(BaseModel):
    """Public identity of the resolved restaurant."""

    id: uuid.UUID
    slug: str
    name: str


# --- Scan ---


class ScanResponse(BaseModel):
    """Response for ``GET /scan``.

    Example::

        {
            "token": "q3Xv...",
            "expires_at": "2026-10-19T12:10:00Z",
            "tenant": {"id": "...", "slug": "acme", "name": "Acme Diner"}
        }
    """

    token: str = Field(description="Single-use scan token for one comment.")
    expires_at: datetime = Field(description="Token is rejected after this instant.")
    tenant: TenantSummary


class ValidateScanTokenResponse(BaseModel):
    """Response for ``GET /validate-scan-token``. Never consumes the token."""

    valid: bool


# --- Comments ---


class CommentCreateRequest(BaseModel):
    """Request body for ``POST /comments``.

    ``comment_text`` is checked by the handler so that the check runs after
    tenant resolution and before the token is touched. Blank text and a
    malformed body are both a 400.
    """

    comment_text: str | None = None
    menu_item_name: str | None = None
    scan_token: str | None = Field(
        default=None,
        description="Scan token, when not sent as cookie or X-Scan-Token header.",
    )


class CommentCreateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_at: datetime


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    comment_text: str
    menu_item_name: str | None
    created_at: datetime


class CommentListResponse(BaseModel):
    """Paginated response for ``GET /comments``, newest first."""

    items: list[CommentResponse] = Field(
        description="Comments for the current page."
    )
    total: int = Field(description="Total number of comments for the tenant.")
    limit: int = Field(description="Maximum items per page (as requested).")
    offset: int = Field(description="Number of items skipped (as requested).")
