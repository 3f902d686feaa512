"""Resolved tenant context for request processing."""

from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class TenantContext:
    """Tenant the current request addresses, immutable for the request.

    Extracted from the request host during resolution.
    """

    tenant_id: uuid.UUID
    slug: str
    name: str
