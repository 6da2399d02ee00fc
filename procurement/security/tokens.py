from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import jwt

from procurement.core.config import Settings


class InvalidTokenError(PermissionError):
    """Raised when a bearer token cannot be decoded or has expired."""


def create_access_token(user_id: UUID, settings: Settings, *, now: datetime | None = None) -> str:
    issued_at = now or datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(minutes=settings.jwt_expiration_minutes)
    claims: dict[str, Any] = {"sub": str(user_id), "iat": issued_at, "exp": expires_at}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> UUID:
    """Return the user id carried by ``token``.

    Raises ``InvalidTokenError`` for bad signatures, expired tokens and tokens
    whose subject is not a user id.
    """

    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as exc:
        raise InvalidTokenError("Invalid authentication credentials") from exc
    try:
        return UUID(str(payload["sub"]))
    except (KeyError, ValueError) as exc:
        raise InvalidTokenError("Invalid authentication credentials") from exc
