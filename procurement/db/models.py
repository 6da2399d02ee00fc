"""SQLModel table definitions for the procurement data layer."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, SmallInteger, String, Text
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    """Return a timezone aware UTC timestamp."""

    return datetime.now(timezone.utc)


class UserTable(SQLModel, table=True):
    """Accounts taking part in the approval workflow."""

    __tablename__ = "users"
    __table_args__ = (CheckConstraint("role >= 1 AND role <= 3", name="ck_users_role"),)

    id: str = Field(primary_key=True)
    name: str = Field(sa_column=Column(Text, nullable=False))
    login: str = Field(sa_column=Column(String(150), nullable=False, unique=True))
    password_hash: str = Field(sa_column=Column(String(255), nullable=False))
    role: int = Field(sa_column=Column(SmallInteger, nullable=False))


class TicketTable(SQLModel, table=True):
    """Purchase requests and their approval state."""

    __tablename__ = "tickets"
    __table_args__ = (
        CheckConstraint("status >= 1 AND status <= 5", name="ck_tickets_status"),
        CheckConstraint("count > 0", name="ck_tickets_count"),
    )

    id: str = Field(primary_key=True)
    title: str = Field(sa_column=Column(Text, nullable=False))
    description: str = Field(sa_column=Column(Text, nullable=False))
    status: int = Field(sa_column=Column(SmallInteger, nullable=False))
    count: int = Field(sa_column=Column(Integer, nullable=False))
    price: Decimal | None = Field(default=None, sa_column=Column(Numeric(14, 2), nullable=True))
    initiator_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="RESTRICT", onupdate="RESTRICT"),
            nullable=False,
        )
    )
    purchasing_manager_id: str | None = Field(
        default=None,
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="RESTRICT", onupdate="RESTRICT"),
            nullable=True,
        ),
    )
    accounting_manager_id: str | None = Field(
        default=None,
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="RESTRICT", onupdate="RESTRICT"),
            nullable=True,
        ),
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
    version: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
