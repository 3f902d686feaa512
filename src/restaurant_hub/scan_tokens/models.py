"""Scan token records and the internal validity classification."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

TOKEN_BYTES = 32


class TokenCheck(StrEnum):
    """Why a token is or is not usable. Internal only; never sent to clients."""

    VALID = "valid"
    UNKNOWN = "unknown"
    TENANT_MISMATCH = "tenant_mismatch"
    EXPIRED = "expired"
    CONSUMED = "consumed"


@dataclass(frozen=True)
class ScanTokenRecord:
    """Stored state of one scan token."""

    token: str
    tenant_slug: str
    issued_at: datetime
    expires_at: datetime
    consumed: bool = False
    consumed_at: datetime | None = None

    def check(self, tenant_slug: str, now: datetime) -> TokenCheck:
        """Classify this record for a request on ``tenant_slug`` at ``now``.

        Expiry wins over consumption: an expired token is reported as
        expired whatever its ``consumed`` flag says.
        """
        if self.tenant_slug != tenant_slug:
            return TokenCheck.TENANT_MISMATCH
        if now > self.expires_at:
            return TokenCheck.EXPIRED
        if self.consumed:
            return TokenCheck.CONSUMED
        return TokenCheck.VALID


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime


def generate_scan_token() -> str:
    """URL-safe token from 32 random bytes (256 bits of entropy)."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def token_fingerprint(token: str) -> str:
    """Short, non-reversible identifier safe to put in logs."""
    return hashlib.sha256(token.encode()).hexdigest()[:12]
