"""User accounts and authentication."""

from .repository import UserRepository
from .service import AuthenticationError, UserService

__all__ = [
    "AuthenticationError",
    "UserRepository",
    "UserService",
]
