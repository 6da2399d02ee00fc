"""Database models and utilities."""

from .errors import (
    DuplicateLoginError,
    StoreError,
    TicketConflictError,
    TicketNotFoundError,
    UserNotFoundError,
    UserReferencedError,
)
from .models import TicketTable, UserTable

__all__ = [
    "DuplicateLoginError",
    "StoreError",
    "TicketConflictError",
    "TicketNotFoundError",
    "TicketTable",
    "UserNotFoundError",
    "UserReferencedError",
    "UserTable",
]
