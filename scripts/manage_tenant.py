"""CLI for tenant provisioning and scan token maintenance.

Usage::

    python -m scripts.manage_tenant <command> [options]

Commands:
    create-tenant       Create a new tenant (restaurant)
    list-tenants        List all tenants with comment counts
    deactivate-tenant   Deactivate a tenant (its hosts stop resolving)
    purge-tokens        Delete scan tokens expired for longer than a grace period
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from sqlalchemy import create_engine, delete, func, select
from sqlalchemy.orm import Session

from restaurant_hub.config import settings
from restaurant_hub.storage.orm import Comment, ScanToken, Tenant
from restaurant_hub.tenancy.resolver import clean_slug


def get_sync_session() -> Session:
    """Create sync session for CLI operations.

    Uses the same database URL as the async app (psycopg v3
    handles both sync and async natively).
    """
    engine = create_engine(settings.database_url)
    return Session(engine)


def create_tenant(args: argparse.Namespace) -> None:
    """Create a new tenant."""
    slug = clean_slug(args.slug)
    if slug is None or slug != args.slug.strip().lower():
        print(
            f"Invalid slug: {args.slug!r} (one DNS label; not api/admin/www)",
            file=sys.stderr,
        )
        sys.exit(1)

    with get_sync_session() as session:
        existing = session.execute(
            select(Tenant).where(Tenant.slug == slug)
        ).scalar_one_or_none()
        if existing is not None:
            print(f"Tenant already exists: {slug}", file=sys.stderr)
            sys.exit(1)

        tenant = Tenant(slug=slug, name=args.name)
        session.add(tenant)
        session.commit()
        print(f"Tenant created: {slug} ({args.name}, id: {tenant.id})")


def list_tenants(_args: argparse.Namespace) -> None:
    """List all tenants with comment counts."""
    with get_sync_session() as session:
        stmt = (
            select(
                Tenant.slug,
                Tenant.name,
                Tenant.is_active,
                func.count(Comment.id).label("comment_count"),
            )
            .outerjoin(Comment, Tenant.id == Comment.tenant_id)
            .group_by(Tenant.id)
            .order_by(Tenant.slug)
        )
        rows = session.execute(stmt).all()

        if not rows:
            print("No tenants found.")
            return

        print("Tenants:")
        for i, row in enumerate(rows, 1):
            status = "active" if row.is_active else "inactive"
            n = row.comment_count
            print(
                f"  {i}. {row.slug} - {row.name} "
                f"({status}, {n} comment{'s' if n != 1 else ''})"
            )


def deactivate_tenant(args: argparse.Namespace) -> None:
    """Deactivate a tenant (its hosts resolve to 'not found')."""
    with get_sync_session() as session:
        tenant = session.execute(
            select(Tenant).where(Tenant.slug == args.slug.lower())
        ).scalar_one_or_none()
        if tenant is None:
            print(f"Tenant not found: {args.slug}", file=sys.stderr)
            sys.exit(1)

        if not tenant.is_active:
            print(f"Tenant already inactive: {args.slug}", file=sys.stderr)
            sys.exit(1)

        tenant.is_active = False
        session.commit()
        print(f"Tenant deactivated: {args.slug}")


def purge_tokens(args: argparse.Namespace) -> None:
    """Delete scan tokens that expired more than N minutes ago."""
    cutoff = datetime.now(UTC) - timedelta(minutes=args.older_than_minutes)
    with get_sync_session() as session:
        result = session.execute(delete(ScanToken).where(ScanToken.expires_at < cutoff))
        session.commit()
        print(f"Purged {result.rowcount} expired scan token(s)")


def main() -> None:
    """Parse arguments and dispatch to command handler."""
    parser = argparse.ArgumentParser(description="Tenant management CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    # create-tenant
    p = sub.add_parser("create-tenant", help="Create a new tenant")
    p.add_argument("--slug", required=True, help="Subdomain label, e.g. acme")
    p.add_argument("--name", required=True, help="Display name")

    # list-tenants
    sub.add_parser("list-tenants", help="List all tenants")

    # deactivate-tenant
    p = sub.add_parser("deactivate-tenant", help="Deactivate a tenant")
    p.add_argument("--slug", required=True, help="Tenant slug")

    # purge-tokens
    p = sub.add_parser("purge-tokens", help="Delete expired scan tokens")
    p.add_argument(
        "--older-than-minutes",
        type=int,
        default=60,
        help="Only tokens expired at least this long ago",
    )

    args = parser.parse_args()
    commands: dict[str, Callable[[argparse.Namespace], None]] = {
        "create-tenant": create_tenant,
        "list-tenants": list_tenants,
        "deactivate-tenant": deactivate_tenant,
        "purge-tokens": purge_tokens,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
