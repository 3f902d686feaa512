"""SQLAlchemy ORM models for all project entities."""

import uuid
from datetime import datetime

import uuid_utils as uuid7_lib
from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _uuid7() -> uuid.UUID:
    """Generate a UUIDv7 (time-ordered) for use as default PK value."""
    return uuid.UUID(bytes=uuid7_lib.uuid7().bytes)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


# ──────────────────────────────────────────────
# Tenants
# ──────────────────────────────────────────────


class Tenant(Base):
    """One restaurant. Provisioned out of band, read-only at request time."""

    __tablename__ = "tenants"
    __table_args__ = (
        CheckConstraint("slug = lower(slug)", name="ck_tenants_slug_lowercase"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid7)
    slug: Mapped[str] = mapped_column(String(63), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    comments: Mapped[list["Comment"]] = relationship(
        back_populates="tenant", cascade="all, delete-orphan"
    )


# ──────────────────────────────────────────────
# Scan tokens & comments
# ──────────────────────────────────────────────


class ScanToken(Base):
    """Single-use authorization for one public comment.

    Bound to the tenant by slug; ``consumed`` only ever goes false → true.
    """

    __tablename__ = "scan_tokens"
    __table_args__ = (
        CheckConstraint("expires_at > issued_at", name="ck_scan_tokens_expiry"),
        Index("ix_scan_tokens_expires_at", "expires_at"),
    )

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    tenant_slug: Mapped[str] = mapped_column(String(63), index=True)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    consumed: Mapped[bool] = mapped_column(default=False)
    consumed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=_uuid7)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"), index=True
    )
    comment_text: Mapped[str] = mapped_column(Text)
    menu_item_name: Mapped[str | None] = mapped_column(String(200))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    tenant: Mapped["Tenant"] = relationship(back_populates="comments")
