"""Purchase request storage and orchestration."""

from .repository import TicketRepository
from .service import TicketDetails, TicketPage, TicketService

__all__ = [
    "TicketDetails",
    "TicketPage",
    "TicketRepository",
    "TicketService",
]
