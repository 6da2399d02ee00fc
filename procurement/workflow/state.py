from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from .roles import Role, TicketEvent


class TicketStatus(str, Enum):
    """Supported states for a purchase request's lifecycle."""

    REQUESTED = "REQUESTED"
    CANCELLED = "CANCELLED"
    CONFIRMED = "CONFIRMED"
    DENIED = "DENIED"
    PAYMENT_COMPLETED = "PAYMENT_COMPLETED"

    @property
    def code(self) -> int:
        return STATUS_CODES[self]

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").lower()

    @classmethod
    def from_code(cls, code: int) -> "TicketStatus":
        for status, value in STATUS_CODES.items():
            if value == code:
                return status
        raise ValueError(f"Unknown ticket status code: {code!r}")

    @classmethod
    def resolve(cls, value: "TicketStatus | int | str") -> "TicketStatus":
        """Coerce an enum member, storage code or member name to a status."""

        if isinstance(value, TicketStatus):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Unknown ticket status: {value!r}")
        if isinstance(value, int):
            return cls.from_code(value)
        if isinstance(value, str):
            try:
                return cls(value.upper())
            except ValueError:
                raise ValueError(f"Unknown ticket status: {value!r}") from None
        raise ValueError(f"Unknown ticket status: {value!r}")


# Storage codes of the ``tickets.status`` column.
STATUS_CODES: Mapping[TicketStatus, int] = {
    TicketStatus.REQUESTED: 1,
    TicketStatus.CANCELLED: 2,
    TicketStatus.CONFIRMED: 3,
    TicketStatus.DENIED: 4,
    TicketStatus.PAYMENT_COMPLETED: 5,
}


@dataclass(frozen=True, slots=True)
class Transition:
    """Single row of the transition table.

    ``assigns`` names the ticket field that receives the acting user's id when the
    transition is applied; ``requires_price`` marks transitions that set the price.
    """

    source: TicketStatus
    event: TicketEvent
    target: TicketStatus
    role: Role
    owner_only: bool = False
    requires_price: bool = False
    assigns: str | None = None


class TicketStateMachine:
    """Authoritative transition table for purchase requests."""

    _TRANSITIONS: Mapping[tuple[TicketStatus, TicketEvent], Transition] = {
        (TicketStatus.REQUESTED, TicketEvent.CANCEL): Transition(
            source=TicketStatus.REQUESTED,
            event=TicketEvent.CANCEL,
            target=TicketStatus.CANCELLED,
            role=Role.INITIATOR,
            owner_only=True,
        ),
        (TicketStatus.REQUESTED, TicketEvent.CONFIRM): Transition(
            source=TicketStatus.REQUESTED,
            event=TicketEvent.CONFIRM,
            target=TicketStatus.CONFIRMED,
            role=Role.PURCHASING_MANAGER,
            requires_price=True,
            assigns="purchasing_manager_id",
        ),
        (TicketStatus.REQUESTED, TicketEvent.DENY): Transition(
            source=TicketStatus.REQUESTED,
            event=TicketEvent.DENY,
            target=TicketStatus.DENIED,
            role=Role.PURCHASING_MANAGER,
            assigns="purchasing_manager_id",
        ),
        (TicketStatus.CONFIRMED, TicketEvent.COMPLETE_PAYMENT): Transition(
            source=TicketStatus.CONFIRMED,
            event=TicketEvent.COMPLETE_PAYMENT,
            target=TicketStatus.PAYMENT_COMPLETED,
            role=Role.ACCOUNTING_MANAGER,
            assigns="accounting_manager_id",
        ),
    }

    @classmethod
    def initial_state(cls) -> TicketStatus:
        return TicketStatus.REQUESTED

    @classmethod
    def transitions(cls) -> tuple[Transition, ...]:
        return tuple(cls._TRANSITIONS.values())

    @classmethod
    def lookup(cls, current: TicketStatus, event: TicketEvent) -> Transition | None:
        return cls._TRANSITIONS.get((current, event))

    @classmethod
    def events_from(cls, current: TicketStatus) -> tuple[TicketEvent, ...]:
        return tuple(event for (source, event) in cls._TRANSITIONS if source == current)

    @classmethod
    def roles_acting_in(cls, current: TicketStatus) -> frozenset[Role]:
        return frozenset(
            transition.role for transition in cls._TRANSITIONS.values() if transition.source == current
        )

    @classmethod
    def is_terminal(cls, current: TicketStatus) -> bool:
        return not cls.events_from(current)
