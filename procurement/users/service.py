from __future__ import annotations

import logging
from uuid import UUID, uuid4

from procurement.core.config import Settings
from procurement.db.errors import UserNotFoundError
from procurement.security.passwords import hash_password, verify_password
from procurement.security.tokens import InvalidTokenError, create_access_token, decode_access_token
from procurement.workflow.models import User
from procurement.workflow.roles import Role

from .repository import UserRepository

logger = logging.getLogger(__name__)


class AuthenticationError(PermissionError):
    """Raised when a login/password pair does not match a stored user."""


class UserService:
    """Account registration, credential checks and token resolution."""

    def __init__(self, repository: UserRepository, settings: Settings) -> None:
        self._repository = repository
        self._settings = settings

    async def register_user(self, *, name: str, login: str, password: str, role: Role) -> User:
        if not name.strip():
            raise ValueError("User name cannot be empty")
        if not login.strip():
            raise ValueError("User login cannot be empty")
        if not password:
            raise ValueError("User password cannot be empty")

        user = User(
            id=uuid4(),
            name=name,
            login=login,
            password_hash=hash_password(password),
            role=role,
        )
        created = await self._repository.create_user(user)
        logger.info("Registered user %s (%s) as %s", created.login, created.id, created.role.value)
        return created

    async def get_user(self, user_id: UUID) -> User:
        user = await self._repository.get_user(user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def authenticate(self, login: str, password: str) -> User:
        user = await self._repository.get_user_by_login(login)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Rejected credentials for login %r", login)
            raise AuthenticationError("Wrong login or password")
        return user

    async def issue_token(self, login: str, password: str) -> str:
        user = await self.authenticate(login, password)
        return create_access_token(user.id, self._settings)

    async def resolve_token(self, token: str) -> User:
        user_id = decode_access_token(token, self._settings)
        user = await self._repository.get_user(user_id)
        if user is None:
            raise InvalidTokenError("Invalid authentication credentials")
        return user

    async def delete_user(self, user_id: UUID) -> None:
        await self._repository.delete_user(user_id)
        logger.info("Deleted user %s", user_id)

    async def change_user_id(self, user_id: UUID, new_id: UUID) -> User:
        user = await self._repository.change_user_id(user_id, new_id)
        logger.info("Re-keyed user %s to %s", user_id, new_id)
        return user
