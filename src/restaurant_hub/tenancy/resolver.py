"""Tenant slug resolution from request addressing information.

Resolution is an ordered list of pure steps; the first step that yields a
slug wins. Each step receives the normalized request signals and the
resolver configuration and returns a slug or ``None``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

import structlog

logger = structlog.get_logger()

RESERVED_WORDS: frozenset[str] = frozenset({"api", "admin", "www"})

TENANT_HEADER = "x-tenant-subdomain"
FORWARDED_HOST_HEADER = "x-forwarded-host"
DEV_LOOPBACK_SUFFIX = ".localhost"

# Single DNS label: what a slug must look like to be usable as a subdomain.
_SLUG_RE = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")
_REFERER_LOOPBACK_RE = re.compile(r"https?://([a-z0-9-]+)\.localhost")


@dataclass(frozen=True)
class ResolverConfig:
    """Static configuration for host-based tenant resolution.

    Attributes:
        root_domain: Production base domain, e.g. ``example.com``.
            Empty disables the subdomain step.
        admin_host: Exact administrative host; never a tenant host.
        domain_map: Custom domain to slug mapping.
    """

    root_domain: str = ""
    admin_host: str = ""
    domain_map: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "root_domain", normalize_host(self.root_domain))
        object.__setattr__(self, "admin_host", normalize_host(self.admin_host))
        object.__setattr__(
            self,
            "domain_map",
            {normalize_host(k): v.strip().lower() for k, v in self.domain_map.items()},
        )


@dataclass(frozen=True)
class RequestSignals:
    """Normalized addressing signals extracted from one request."""

    host: str
    forwarded_host: str
    tenant_header: str

    @property
    def candidate_hosts(self) -> tuple[str, ...]:
        """Hosts to inspect, ``Host`` before ``X-Forwarded-Host``."""
        return tuple(h for h in (self.host, self.forwarded_host) if h)


ResolverStep = Callable[[RequestSignals, ResolverConfig], str | None]


class HostType(StrEnum):
    ADMIN = "admin"
    ROOT = "root"
    TENANT = "tenant"


def normalize_host(raw: str | None) -> str:
    """Lowercase a host and strip whitespace, a trailing dot and any port.

    ``[::1]:3000`` becomes ``[::1]``; ``Acme.Example.com:443`` becomes
    ``acme.example.com``. Never raises.
    """
    if not raw:
        return ""
    host = raw.strip().lower()
    if host.startswith("["):
        end = host.find("]")
        return host[: end + 1] if end != -1 else host
    name, sep, port = host.rpartition(":")
    if sep and port.isdigit():
        host = name
    return host.rstrip(".")


def is_valid_slug(value: str) -> bool:
    return bool(_SLUG_RE.match(value)) and value not in RESERVED_WORDS


def clean_slug(value: str | None) -> str | None:
    if not value:
        return None
    slug = value.strip().lower()
    return slug if is_valid_slug(slug) else None


def _is_admin_host(host: str, config: ResolverConfig) -> bool:
    if config.admin_host and host == config.admin_host:
        return True
    return host.split(".", 1)[0] in RESERVED_WORDS


def extract_signals(hostname: str, headers: Mapping[str, str]) -> RequestSignals:
    """Build normalized signals from a raw host and header mapping.

    Header names are matched case-insensitively. ``X-Forwarded-Host`` may
    carry a comma-separated proxy chain; the first entry is the client host.
    """
    lowered = {k.lower(): v for k, v in headers.items()}
    forwarded = lowered.get(FORWARDED_HOST_HEADER, "").split(",", 1)[0]
    return RequestSignals(
        host=normalize_host(hostname or lowered.get("host", "")),
        forwarded_host=normalize_host(forwarded),
        tenant_header=lowered.get(TENANT_HEADER, ""),
    )


# ── Resolution steps ──────────────────────────────────────────────


def slug_from_routing_header(
    signals: RequestSignals, config: ResolverConfig
) -> str | None:
    """Pre-resolved slug set by an upstream proxy or the frontend."""
    return clean_slug(signals.tenant_header)


def slug_from_root_domain(
    signals: RequestSignals, config: ResolverConfig
) -> str | None:
    """``<slug>.<root_domain>`` in production."""
    if not config.root_domain:
        return None
    suffix = "." + config.root_domain
    for host in signals.candidate_hosts:
        if not host.endswith(suffix) or _is_admin_host(host, config):
            continue
        slug = clean_slug(host[: -len(suffix)])
        if slug:
            return slug
    return None


def slug_from_dev_loopback(
    signals: RequestSignals, config: ResolverConfig
) -> str | None:
    """``<slug>.localhost`` in local development.

    Only the label immediately before ``.localhost`` counts, so
    ``menu.acme.localhost`` resolves to ``acme``.
    """
    for host in signals.candidate_hosts:
        if not host.endswith(DEV_LOOPBACK_SUFFIX):
            continue
        head = host[: -len(DEV_LOOPBACK_SUFFIX)]
        slug = clean_slug(head.rsplit(".", 1)[-1])
        if slug:
            return slug
    return None


def slug_from_domain_map(
    signals: RequestSignals, config: ResolverConfig
) -> str | None:
    """Custom domains mapped to tenants by configuration."""
    for host in signals.candidate_hosts:
        slug = clean_slug(config.domain_map.get(host))
        if slug:
            return slug
    return None


def slug_from_referer(referer: str | None) -> str | None:
    """Slug of a ``http://<slug>.localhost`` page that linked here.

    Development fallback for API calls made from a frontend served on a
    loopback subdomain to a bare ``localhost`` backend.
    """
    if not referer:
        return None
    match = _REFERER_LOOPBACK_RE.search(referer.strip().lower())
    return clean_slug(match.group(1)) if match else None


DEFAULT_STEPS: tuple[ResolverStep, ...] = (
    slug_from_routing_header,
    slug_from_root_domain,
    slug_from_dev_loopback,
    slug_from_domain_map,
)


def resolve_slug(
    hostname: str,
    headers: Mapping[str, str],
    config: ResolverConfig,
    steps: Sequence[ResolverStep] = DEFAULT_STEPS,
) -> str | None:
    """Map a raw host and header bundle to a tenant slug.

    Steps are tried in order and the first non-``None`` result wins.
    Malformed or missing signals fall through to the next step; when all
    steps are exhausted ``None`` is returned.

    Args:
        hostname: Value of the ``Host`` header (port allowed).
        headers: Request headers, any key casing.
        config: Root domain, admin host and custom domain map.
        steps: Resolution steps in precedence order.

    Returns:
        Lowercase slug, or None if the request carries no tenant.
    """
    signals = extract_signals(hostname, headers)
    for step in steps:
        slug = step(signals, config)
        if slug is not None:
            logger.debug("tenant_slug_resolved", slug=slug, step=step.__name__)
            return slug
    logger.debug(
        "tenant_slug_unresolved",
        host=signals.host,
        forwarded_host=signals.forwarded_host,
    )
    return None


def detect_host_type(hostname: str, config: ResolverConfig) -> HostType:
    """Classify a host as administrative, bare root domain, or tenant."""
    host = normalize_host(hostname)
    if (config.admin_host and host == config.admin_host) or host.startswith(
        "admin."
    ):
        return HostType.ADMIN
    root_hosts = {"localhost"}
    if config.root_domain:
        root_hosts |= {config.root_domain, f"www.{config.root_domain}"}
    if host in root_hosts:
        return HostType.ROOT
    return HostType.TENANT
