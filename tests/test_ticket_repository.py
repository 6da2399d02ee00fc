from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker

from procurement.db import TicketConflictError, TicketNotFoundError, TicketTable
from procurement.tickets.repository import TicketRepository
from procurement.users.repository import UserRepository
from procurement.workflow import Role, TicketStatus

from factories import make_ticket, make_user


@pytest.mark.asyncio
async def test_add_and_get_ticket(session_factory: async_sessionmaker):
    users = UserRepository(session_factory)
    repo = TicketRepository(session_factory)
    initiator = make_user(Role.INITIATOR)
    await users.create_user(initiator)
    ticket = make_ticket(initiator, version=5)

    stored = await repo.add_ticket(ticket)
    loaded = await repo.get_ticket(ticket.id)

    assert stored.version == 0
    assert loaded == stored
    assert loaded.created_at.tzinfo is not None
    assert await repo.get_ticket(uuid4()) is None


@pytest.mark.asyncio
async def test_ticket_columns_use_storage_codes(session_factory: async_sessionmaker):
    repo = TicketRepository(session_factory)
    initiator = make_user(Role.INITIATOR)
    ticket = make_ticket(initiator, status=TicketStatus.CONFIRMED, price=Decimal("12.50"))

    await repo.add_ticket(ticket)

    async with session_factory() as session:
        row = await session.get(TicketTable, str(ticket.id))
    assert row is not None
    assert row.status == 3
    assert row.initiator_id == str(initiator.id)


@pytest.mark.asyncio
async def test_save_ticket_bumps_version(session_factory: async_sessionmaker):
    repo = TicketRepository(session_factory)
    initiator = make_user(Role.INITIATOR)
    manager = make_user(Role.PURCHASING_MANAGER)
    stored = await repo.add_ticket(make_ticket(initiator))

    confirmed = replace(
        stored,
        status=TicketStatus.CONFIRMED,
        price=Decimal("150.00"),
        purchasing_manager_id=manager.id,
    )
    saved = await repo.save_ticket(confirmed)
    loaded = await repo.get_ticket(stored.id)

    assert saved.version == 1
    assert loaded == saved
    assert loaded.price == Decimal("150.00")
    assert loaded.purchasing_manager_id == manager.id


@pytest.mark.asyncio
async def test_stale_snapshot_conflicts(session_factory: async_sessionmaker):
    repo = TicketRepository(session_factory)
    initiator = make_user(Role.INITIATOR)
    stored = await repo.add_ticket(make_ticket(initiator))

    await repo.save_ticket(replace(stored, title="First writer"))

    with pytest.raises(TicketConflictError):
        await repo.save_ticket(replace(stored, title="Second writer"))

    loaded = await repo.get_ticket(stored.id)
    assert loaded.title == "First writer"
    assert loaded.version == 1


@pytest.mark.asyncio
async def test_save_missing_ticket_is_not_found(session_factory: async_sessionmaker):
    repo = TicketRepository(session_factory)

    with pytest.raises(TicketNotFoundError):
        await repo.save_ticket(make_ticket(make_user(Role.INITIATOR)))


@pytest.mark.asyncio
async def test_list_tickets_orders_newest_first(session_factory: async_sessionmaker):
    repo = TicketRepository(session_factory)
    initiator = make_user(Role.INITIATOR)
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    created = [
        await repo.add_ticket(make_ticket(initiator, created_at=start + timedelta(minutes=offset)))
        for offset in range(5)
    ]

    first_page = await repo.list_tickets(offset=0, limit=2)
    second_page = await repo.list_tickets(offset=2, limit=2)

    assert [ticket.id for ticket in first_page] == [created[4].id, created[3].id]
    assert [ticket.id for ticket in second_page] == [created[2].id, created[1].id]
    assert await repo.count_tickets() == 5
