"""Users and purchase request tables."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20241007_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("login", sa.String(length=150), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column(
            "role",
            sa.SmallInteger(),
            nullable=False,
            comment="1 - initiator, 2 - purchasing manager, 3 - accounting manager",
        ),
        sa.CheckConstraint("role >= 1 AND role <= 3", name="ck_users_role"),
    )

    op.create_table(
        "tickets",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "status",
            sa.SmallInteger(),
            nullable=False,
            comment="1 - requested, 2 - cancelled, 3 - confirmed, 4 - denied, 5 - payment completed",
        ),
        sa.Column("count", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column(
            "initiator_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="RESTRICT", onupdate="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "purchasing_manager_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="RESTRICT", onupdate="RESTRICT"),
            nullable=True,
        ),
        sa.Column(
            "accounting_manager_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="RESTRICT", onupdate="RESTRICT"),
            nullable=True,
        ),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.CheckConstraint("status >= 1 AND status <= 5", name="ck_tickets_status"),
        sa.CheckConstraint("count > 0", name="ck_tickets_count"),
    )
    op.create_index("ix_tickets_created_at", "tickets", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_tickets_created_at", table_name="tickets")
    op.drop_table("tickets")
    op.drop_table("users")
