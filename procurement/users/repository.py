from __future__ import annotations

from dataclasses import replace
from typing import Iterable
from uuid import UUID

from sqlalchemy import func, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel, select

from procurement.db.errors import DuplicateLoginError, StoreError, UserNotFoundError, UserReferencedError
from procurement.db.models import TicketTable, UserTable
from procurement.workflow.models import User
from procurement.workflow.roles import Role


class UserRepository:
    """Persistence helper wrapping the `users` table.

    Tickets reference users with RESTRICT semantics. Not every backend enforces
    foreign key actions (SQLite needs a pragma), so deletes and re-keys check for
    referencing tickets explicitly before touching the row.
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

    async def create_user(self, user: User) -> User:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    existing = await session.execute(select(UserTable.id).where(UserTable.login == user.login))
                    if existing.first() is not None:
                        raise DuplicateLoginError(f"Login {user.login!r} is already taken")
                    session.add(
                        UserTable(
                            id=str(user.id),
                            name=user.name,
                            login=user.login,
                            password_hash=user.password_hash,
                            role=user.role.code,
                        )
                    )
        except IntegrityError as exc:
            raise DuplicateLoginError(f"Login {user.login!r} is already taken") from exc
        return user

    async def get_user(self, user_id: UUID) -> User | None:
        async with self._session_factory() as session:
            row = await session.get(UserTable, str(user_id))
            if row is None:
                return None
            return self._table_to_user(row)

    async def get_user_by_login(self, login: str) -> User | None:
        async with self._session_factory() as session:
            result = await session.execute(select(UserTable).where(UserTable.login == login).limit(1))
            row = result.scalars().first()
            if row is None:
                return None
            return self._table_to_user(row)

    async def get_users_by_ids(self, user_ids: Iterable[UUID]) -> dict[UUID, User]:
        keys = sorted({str(user_id) for user_id in user_ids})
        if not keys:
            return {}
        async with self._session_factory() as session:
            result = await session.execute(select(UserTable).where(UserTable.id.in_(keys)))
            users = [self._table_to_user(row) for row in result.scalars().all()]
        return {user.id: user for user in users}

    async def delete_user(self, user_id: UUID) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                row = await session.get(UserTable, str(user_id))
                if row is None:
                    raise UserNotFoundError(f"User {user_id} not found")
                await self._ensure_unreferenced(session, user_id, action="deleted")
                await session.delete(row)

    async def change_user_id(self, user_id: UUID, new_id: UUID) -> User:
        async with self._session_factory() as session:
            async with session.begin():
                row = await session.get(UserTable, str(user_id))
                if row is None:
                    raise UserNotFoundError(f"User {user_id} not found")
                await self._ensure_unreferenced(session, user_id, action="re-keyed")
                if await session.get(UserTable, str(new_id)) is not None:
                    raise StoreError(f"User id {new_id} is already in use")
                renamed = replace(self._table_to_user(row), id=new_id)
                await session.execute(
                    update(UserTable)
                    .where(UserTable.id == str(user_id))
                    .values(id=str(new_id))
                    .execution_options(synchronize_session=False)
                )
        return renamed

    @staticmethod
    async def _ensure_unreferenced(session: AsyncSession, user_id: UUID, *, action: str) -> None:
        key = str(user_id)
        result = await session.execute(
            select(func.count())
            .select_from(TicketTable)
            .where(
                or_(
                    TicketTable.initiator_id == key,
                    TicketTable.purchasing_manager_id == key,
                    TicketTable.accounting_manager_id == key,
                )
            )
        )
        references = int(result.scalar_one())
        if references:
            raise UserReferencedError(
                f"User {user_id} is referenced by {references} ticket(s) and cannot be {action}"
            )

    @staticmethod
    def _table_to_user(row: UserTable) -> User:
        return User(
            id=UUID(row.id),
            name=row.name,
            login=row.login,
            password_hash=row.password_hash,
            role=Role.from_code(row.role),
        )
