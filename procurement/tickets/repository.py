from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel, select

from procurement.db.errors import TicketConflictError, TicketNotFoundError
from procurement.db.models import TicketTable
from procurement.workflow.models import Ticket
from procurement.workflow.state import TicketStatus


class TicketRepository:
    """Persistence helper wrapping the `tickets` table.

    Writes are guarded by the ``version`` column: a snapshot can only be saved on
    top of the exact row it was loaded from.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine: AsyncEngine | None = engine

    async def ensure_schema(self) -> None:
        if self._engine is None:
            raise RuntimeError("Session factory is not bound to an async engine")
        async with self._engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)

    async def add_ticket(self, ticket: Ticket) -> Ticket:
        stored = replace(ticket, version=0)
        async with self._session_factory() as session:
            async with session.begin():
                session.add(
                    TicketTable(
                        id=str(stored.id),
                        created_at=stored.created_at,
                        version=stored.version,
                        **self._ticket_columns(stored),
                    )
                )
        return stored

    async def get_ticket(self, ticket_id: UUID) -> Ticket | None:
        async with self._session_factory() as session:
            row = await session.get(TicketTable, str(ticket_id))
            if row is None:
                return None
            return self._table_to_ticket(row)

    async def save_ticket(self, ticket: Ticket) -> Ticket:
        """Persist ``ticket`` if the stored row still has the snapshot's version.

        Returns the snapshot with its bumped version. Raises
        ``TicketConflictError`` when another writer got there first.
        """

        next_version = ticket.version + 1
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(TicketTable)
                    .where(TicketTable.id == str(ticket.id))
                    .where(TicketTable.version == ticket.version)
                    .values(version=next_version, **self._ticket_columns(ticket))
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    exists = await session.get(TicketTable, str(ticket.id))
                    if exists is None:
                        raise TicketNotFoundError(f"Ticket {ticket.id} not found")
                    raise TicketConflictError(
                        f"Ticket {ticket.id} was modified concurrently "
                        f"(expected version {ticket.version}, found {exists.version})"
                    )
        return replace(ticket, version=next_version)

    async def list_tickets(self, *, offset: int = 0, limit: int = 50) -> Sequence[Ticket]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TicketTable)
                .order_by(TicketTable.created_at.desc(), TicketTable.id.desc())
                .offset(offset)
                .limit(limit)
            )
            return [self._table_to_ticket(row) for row in result.scalars().all()]

    async def count_tickets(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(select(func.count()).select_from(TicketTable))
            return int(result.scalar_one())

    @staticmethod
    def _ticket_columns(ticket: Ticket) -> dict[str, object]:
        status = TicketStatus.resolve(ticket.status)
        return {
            "title": ticket.title,
            "description": ticket.description,
            "status": status.code,
            "count": ticket.count,
            "price": ticket.price,
            "initiator_id": str(ticket.initiator_id),
            "purchasing_manager_id": _optional_str(ticket.purchasing_manager_id),
            "accounting_manager_id": _optional_str(ticket.accounting_manager_id),
        }

    @staticmethod
    def _table_to_ticket(row: TicketTable) -> Ticket:
        return Ticket(
            id=UUID(row.id),
            title=row.title,
            description=row.description,
            status=TicketStatus.from_code(row.status),
            count=row.count,
            price=_to_decimal(row.price),
            initiator_id=UUID(row.initiator_id),
            purchasing_manager_id=_optional_uuid(row.purchasing_manager_id),
            accounting_manager_id=_optional_uuid(row.accounting_manager_id),
            created_at=_ensure_datetime(row.created_at),
            version=row.version,
        )


def _optional_str(value: UUID | None) -> str | None:
    return None if value is None else str(value)


def _optional_uuid(value: str | None) -> UUID | None:
    return None if value is None else UUID(value)


def _to_decimal(value: object) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _ensure_datetime(value: datetime | None) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    raise TypeError("Expected datetime value from database")
