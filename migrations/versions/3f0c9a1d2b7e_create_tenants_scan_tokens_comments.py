"""create_tenants_scan_tokens_comments

Initial schema: tenants, scan_tokens and comments.

Revision ID: 3f0c9a1d2b7e
Revises:
Create Date: 2026-10-19 10:12:41.508213

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f0c9a1d2b7e"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create tenants, scan_tokens and comments."""
    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("slug", sa.String(length=63), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint("slug = lower(slug)", name="ck_tenants_slug_lowercase"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tenants_slug", "tenants", ["slug"], unique=True)

    op.create_table(
        "scan_tokens",
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.Column("tenant_slug", sa.String(length=63), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("consumed", sa.Boolean(), nullable=False),
        sa.Column("consumed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("expires_at > issued_at", name="ck_scan_tokens_expiry"),
        sa.PrimaryKeyConstraint("token"),
    )
    op.create_index("ix_scan_tokens_tenant_slug", "scan_tokens", ["tenant_slug"])
    op.create_index("ix_scan_tokens_expires_at", "scan_tokens", ["expires_at"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("comment_text", sa.Text(), nullable=False),
        sa.Column("menu_item_name", sa.String(length=200), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comments_tenant_id", "comments", ["tenant_id"])


def downgrade() -> None:
    """Drop comments, scan_tokens and tenants."""
    op.drop_index("ix_comments_tenant_id", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_scan_tokens_expires_at", table_name="scan_tokens")
    op.drop_index("ix_scan_tokens_tenant_slug", table_name="scan_tokens")
    op.drop_table("scan_tokens")
    op.drop_index("ix_tenants_slug", table_name="tenants")
    op.drop_table("tenants")
