"""Scan token storage abstraction and the in-process implementation."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from threading import Lock
from typing import Protocol

from restaurant_hub.scan_tokens.models import ScanTokenRecord, TokenCheck


class ScanTokenStore(Protocol):
    """Backing store for scan tokens.

    ``consume`` must be a single atomic check-and-set: of any number of
    concurrent calls for one valid token, exactly one returns True.
    """

    async def insert(self, record: ScanTokenRecord) -> bool:
        """Store a new record. Return False if the token already exists."""
        ...

    async def get(self, token: str) -> ScanTokenRecord | None: ...

    async def consume(self, token: str, tenant_slug: str, now: datetime) -> bool:
        """Mark the token consumed iff it is valid for ``tenant_slug`` at ``now``."""
        ...

    async def purge_expired(self, before: datetime) -> int:
        """Delete records that expired before ``before``. Return the count."""
        ...


class InMemoryScanTokenStore:
    """Process-local token store guarded by a lock.

    Correct for a single-instance deployment only; instances do not see
    each other's tokens. Use ``SqlScanTokenStore`` for anything larger.
    """

    def __init__(self) -> None:
        self._records: dict[str, ScanTokenRecord] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._records)

    async def insert(self, record: ScanTokenRecord) -> bool:
        with self._lock:
            if record.token in self._records:
                return False
            self._records[record.token] = record
            return True

    async def get(self, token: str) -> ScanTokenRecord | None:
        with self._lock:
            return self._records.get(token)

    async def consume(self, token: str, tenant_slug: str, now: datetime) -> bool:
        with self._lock:
            record = self._records.get(token)
            if record is None or record.check(tenant_slug, now) != TokenCheck.VALID:
                return False
            self._records[token] = replace(record, consumed=True, consumed_at=now)
            return True

    async def purge_expired(self, before: datetime) -> int:
        with self._lock:
            stale = [t for t, r in self._records.items() if r.expires_at < before]
            for token in stale:
                del self._records[token]
        return len(stale)
