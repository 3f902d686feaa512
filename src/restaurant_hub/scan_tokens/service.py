"""Issue, check and consume single-use scan tokens."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog

from restaurant_hub.errors import BackingStoreFailure
from restaurant_hub.scan_tokens.models import (
    IssuedToken,
    ScanTokenRecord,
    TokenCheck,
    generate_scan_token,
    token_fingerprint,
)
from restaurant_hub.scan_tokens.store import ScanTokenStore

logger = structlog.get_logger()

DEFAULT_TTL = timedelta(minutes=10)
MAX_ISSUE_ATTEMPTS = 3


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ScanTokenService:
    """Single-use, tenant-bound, time-limited scan tokens.

    Every failure mode (unknown, other tenant, expired, already consumed)
    yields the same ``False`` to the caller. The reason is logged.
    """

    def __init__(
        self,
        store: ScanTokenStore,
        *,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = _utcnow,
        token_factory: Callable[[], str] = generate_scan_token,
    ) -> None:
        self._store = store
        self._ttl = ttl
        self._clock = clock
        self._token_factory = token_factory

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def store(self) -> ScanTokenStore:
        return self._store

    async def issue(self, tenant_slug: str) -> IssuedToken:
        """Create and durably record a token bound to ``tenant_slug``.

        A token value that collides with an existing record is discarded
        and regenerated.

        Raises:
            BackingStoreFailure: the store failed, or no unique token was
                produced within ``MAX_ISSUE_ATTEMPTS``.
        """
        for attempt in range(1, MAX_ISSUE_ATTEMPTS + 1):
            issued_at = self._clock()
            record = ScanTokenRecord(
                token=self._token_factory(),
                tenant_slug=tenant_slug,
                issued_at=issued_at,
                expires_at=issued_at + self._ttl,
            )
            if await self._store.insert(record):
                logger.info(
                    "scan_token_issued",
                    tenant=tenant_slug,
                    token_id=token_fingerprint(record.token),
                    expires_at=record.expires_at.isoformat(),
                )
                return IssuedToken(token=record.token, expires_at=record.expires_at)
            logger.warning("scan_token_collision", tenant=tenant_slug, attempt=attempt)

        msg = f"Could not generate a unique scan token in {MAX_ISSUE_ATTEMPTS} attempts"
        raise BackingStoreFailure(msg)

    async def check(self, token: str, tenant_slug: str) -> TokenCheck:
        """Classify ``token`` for ``tenant_slug`` without changing it."""
        record = await self._store.get(token)
        if record is None:
            return TokenCheck.UNKNOWN
        return record.check(tenant_slug, self._clock())

    async def validate_only(self, token: str, tenant_slug: str) -> bool:
        """Read-only validity check, e.g. to decide whether to show a form."""
        result = await self.check(token, tenant_slug)
        if result is not TokenCheck.VALID:
            self._log_rejection(token, tenant_slug, result, consuming=False)
        return result is TokenCheck.VALID

    async def validate_and_consume(self, token: str, tenant_slug: str) -> bool:
        """Atomically check the token and mark it consumed.

        Returns True exactly once per valid token, however many concurrent
        callers race for it.
        """
        if await self._store.consume(token, tenant_slug, self._clock()):
            logger.info(
                "scan_token_consumed",
                tenant=tenant_slug,
                token_id=token_fingerprint(token),
            )
            return True

        # Diagnose after the fact for the log only; the outcome is decided.
        try:
            result = await self.check(token, tenant_slug)
        except BackingStoreFailure:
            logger.warning(
                "scan_token_diagnosis_failed",
                tenant=tenant_slug,
                token_id=token_fingerprint(token),
            )
            result = TokenCheck.UNKNOWN
        if result is TokenCheck.VALID:
            # The store refused; this call did not consume.
            result = TokenCheck.CONSUMED
        self._log_rejection(token, tenant_slug, result, consuming=True)
        return False

    async def purge_expired(self, grace: timedelta = timedelta(hours=1)) -> int:
        """Physically remove tokens that expired more than ``grace`` ago."""
        removed = await self._store.purge_expired(self._clock() - grace)
        if removed:
            logger.info("scan_tokens_purged", count=removed)
        return removed

    def _log_rejection(
        self, token: str, tenant_slug: str, reason: TokenCheck, *, consuming: bool
    ) -> None:
        logger.info(
            "scan_token_rejected",
            tenant=tenant_slug,
            token_id=token_fingerprint(token),
            reason=str(reason),
            consuming=consuming,
        )
