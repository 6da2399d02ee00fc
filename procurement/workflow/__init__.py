"""Purchase request workflow: roles, statuses and transition validation."""

from .errors import RejectionReason, TransitionRejected
from .models import Ticket, TransitionPayload, User
from .roles import ROLE_CODES, Role, TicketEvent, permits
from .state import STATUS_CODES, TicketStateMachine, TicketStatus, Transition
from .validator import apply_transition, edit_description, edit_title

__all__ = [
    "ROLE_CODES",
    "STATUS_CODES",
    "RejectionReason",
    "Role",
    "Ticket",
    "TicketEvent",
    "TicketStateMachine",
    "TicketStatus",
    "Transition",
    "TransitionPayload",
    "TransitionRejected",
    "User",
    "apply_transition",
    "edit_description",
    "edit_title",
    "permits",
]
