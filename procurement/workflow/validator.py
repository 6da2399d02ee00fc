"""Pure validation of operations against a ticket snapshot.

Nothing in this module touches storage: callers load a snapshot, hand it over
together with the acting user, and persist whatever comes back.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from .errors import RejectionReason, TransitionRejected
from .models import Ticket, TransitionPayload, User
from .roles import Role, TicketEvent, permits, roles_permitted
from .state import TicketStateMachine, TicketStatus

_CENT = Decimal("0.01")

# Bounds of the NUMERIC(14, 2) price and INTEGER count columns.
PRICE_INTEGER_DIGITS = 12
MAX_COUNT = 2**31 - 1


def resolve_status(ticket: Ticket) -> TicketStatus:
    try:
        return TicketStatus.resolve(ticket.status)
    except ValueError:
        raise TransitionRejected(
            RejectionReason.UNKNOWN_STATE,
            f"ticket {ticket.id} has an unknown status {ticket.status!r}",
        ) from None


def apply_transition(
    ticket: Ticket,
    acting_user: User,
    event: TicketEvent,
    payload: TransitionPayload | None = None,
) -> Ticket:
    """Validate ``event`` against ``ticket`` and return the resulting snapshot.

    Raises ``TransitionRejected`` on the first failed check; the input snapshot is
    never modified.
    """

    payload = payload or TransitionPayload()
    current = resolve_status(ticket)

    if TicketStateMachine.is_terminal(current):
        raise TransitionRejected(
            RejectionReason.ILLEGAL_TRANSITION,
            f"the request is already {current.label} and can no longer change",
        )

    acting_roles = TicketStateMachine.roles_acting_in(current)
    if acting_user.role not in acting_roles:
        raise TransitionRejected(
            RejectionReason.FORBIDDEN,
            f"only the {_join_roles(acting_roles)} may act on a {current.label} request",
        )

    transition = TicketStateMachine.lookup(current, event)
    if transition is None:
        raise TransitionRejected(
            RejectionReason.ILLEGAL_TRANSITION,
            f"cannot {event.verb} a {current.label} request",
        )

    if not permits(acting_user.role, event):
        raise TransitionRejected(
            RejectionReason.FORBIDDEN,
            f"only the {_join_roles(roles_permitted(event))} may {event.verb} this request",
        )

    if transition.owner_only and acting_user.id != ticket.initiator_id:
        raise TransitionRejected(
            RejectionReason.NOT_OWNER,
            f"only the initiator who raised this request may {event.verb} it",
        )

    changes: dict[str, Any] = {"status": transition.target}
    if transition.requires_price:
        changes["price"] = parse_price(payload.price)
    if event is TicketEvent.DENY:
        _check_reason(payload.reason)
    if transition.assigns is not None:
        changes[transition.assigns] = acting_user.id

    return replace(ticket, **changes)


def edit_title(ticket: Ticket, acting_user: User, title: str) -> Ticket:
    """Rename a request; only its initiator may do so, and only before review."""

    current = resolve_status(ticket)
    if acting_user.id != ticket.initiator_id:
        raise TransitionRejected(
            RejectionReason.NOT_OWNER,
            "only the initiator who raised this request may change its title",
        )
    if current is not TicketStateMachine.initial_state():
        raise TransitionRejected(
            RejectionReason.NOT_EDITABLE,
            f"the title of a {current.label} request can no longer be changed",
        )
    return replace(ticket, title=_require_text(title, "title"))


def edit_description(ticket: Ticket, acting_user: User, description: str) -> Ticket:
    """Replace a request's description.

    The description doubles as a comment log, so any participant may edit it at
    any point of the lifecycle.
    """

    resolve_status(ticket)
    return replace(ticket, description=_require_text(description, "description"))


def parse_price(value: Any) -> Decimal:
    """Coerce a confirmation price, rejecting anything but a positive amount in cents."""

    if value is None:
        raise TransitionRejected(RejectionReason.INVALID_PAYLOAD, "a price is required to confirm a request")
    if isinstance(value, bool):
        raise TransitionRejected(RejectionReason.INVALID_PAYLOAD, f"invalid price: {value!r}")
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise TransitionRejected(RejectionReason.INVALID_PAYLOAD, f"invalid price: {value!r}") from None

    if not price.is_finite() or price <= 0:
        raise TransitionRejected(RejectionReason.INVALID_PAYLOAD, "the price must be greater than zero")
    if price.adjusted() >= PRICE_INTEGER_DIGITS:
        raise TransitionRejected(
            RejectionReason.INVALID_PAYLOAD,
            f"the price cannot have more than {PRICE_INTEGER_DIGITS} digits before the decimal point",
        )
    try:
        in_cents = price.quantize(_CENT)
    except InvalidOperation:
        raise TransitionRejected(RejectionReason.INVALID_PAYLOAD, f"invalid price: {value!r}") from None
    if in_cents != price:
        raise TransitionRejected(
            RejectionReason.INVALID_PAYLOAD,
            "the price cannot have more than two decimal places",
        )
    return price


def parse_count(value: Any) -> int:
    """Check a requested quantity: a positive integer that fits the count column."""

    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise TransitionRejected(
            RejectionReason.INVALID_PAYLOAD, "the requested count must be a positive integer"
        )
    if value > MAX_COUNT:
        raise TransitionRejected(
            RejectionReason.INVALID_PAYLOAD, f"the requested count cannot exceed {MAX_COUNT}"
        )
    return value


def _check_reason(reason: Any) -> None:
    if reason is not None and not isinstance(reason, str):
        raise TransitionRejected(RejectionReason.INVALID_PAYLOAD, "the denial reason must be text")


def _require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise TransitionRejected(RejectionReason.INVALID_PAYLOAD, f"the {field_name} cannot be empty")
    return value


def _join_roles(roles: Iterable[Role]) -> str:
    ordered = sorted(roles, key=lambda role: role.code)
    return " or ".join(role.label for role in ordered)


__all__ = [
    "MAX_COUNT",
    "PRICE_INTEGER_DIGITS",
    "apply_transition",
    "edit_description",
    "edit_title",
    "parse_count",
    "parse_price",
    "resolve_status",
]
