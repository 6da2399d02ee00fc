from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from .roles import Role
from .state import TicketStatus


@dataclass(frozen=True, slots=True)
class User:
    """Account taking part in the approval workflow."""

    id: UUID
    name: str
    login: str
    password_hash: str
    role: Role


@dataclass(frozen=True, slots=True)
class Ticket:
    """Snapshot of a purchase request.

    Snapshots are immutable; every accepted operation produces a new one.
    ``version`` is the optimistic concurrency token assigned by the store and is
    carried through unchanged by the workflow engine.
    """

    id: UUID
    title: str
    description: str
    status: TicketStatus
    count: int
    price: Decimal | None
    initiator_id: UUID
    purchasing_manager_id: UUID | None
    accounting_manager_id: UUID | None
    created_at: datetime
    version: int = 0


@dataclass(frozen=True, slots=True)
class TransitionPayload:
    """Input accompanying a ticket event."""

    price: Decimal | float | int | str | None = None
    reason: str | None = None
