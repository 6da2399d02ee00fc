from __future__ import annotations

from enum import Enum
from typing import Mapping


class Role(str, Enum):
    """Roles a user may hold in the purchase approval workflow."""

    INITIATOR = "INITIATOR"
    PURCHASING_MANAGER = "PURCHASING_MANAGER"
    ACCOUNTING_MANAGER = "ACCOUNTING_MANAGER"

    @property
    def code(self) -> int:
        return ROLE_CODES[self]

    @property
    def label(self) -> str:
        return _ROLE_LABELS[self]

    @classmethod
    def from_code(cls, code: int) -> "Role":
        for role, value in ROLE_CODES.items():
            if value == code:
                return role
        raise ValueError(f"Unknown role code: {code!r}")


class TicketEvent(str, Enum):
    """Named operations that move a ticket between statuses."""

    CANCEL = "cancel"
    CONFIRM = "confirm"
    DENY = "deny"
    COMPLETE_PAYMENT = "complete_payment"

    @property
    def verb(self) -> str:
        return _EVENT_VERBS[self]


# Storage codes of the ``users.role`` column.
ROLE_CODES: Mapping[Role, int] = {
    Role.INITIATOR: 1,
    Role.PURCHASING_MANAGER: 2,
    Role.ACCOUNTING_MANAGER: 3,
}

_ROLE_LABELS: Mapping[Role, str] = {
    Role.INITIATOR: "initiator",
    Role.PURCHASING_MANAGER: "purchasing manager",
    Role.ACCOUNTING_MANAGER: "accounting manager",
}

_EVENT_VERBS: Mapping[TicketEvent, str] = {
    TicketEvent.CANCEL: "cancel",
    TicketEvent.CONFIRM: "confirm",
    TicketEvent.DENY: "deny",
    TicketEvent.COMPLETE_PAYMENT: "mark as paid",
}

_PERMISSIONS: Mapping[Role, frozenset[TicketEvent]] = {
    Role.INITIATOR: frozenset({TicketEvent.CANCEL}),
    Role.PURCHASING_MANAGER: frozenset({TicketEvent.CONFIRM, TicketEvent.DENY}),
    Role.ACCOUNTING_MANAGER: frozenset({TicketEvent.COMPLETE_PAYMENT}),
}


def permits(role: Role, event: TicketEvent) -> bool:
    """Return whether ``role`` may originate ``event`` on some ticket."""

    return event in _PERMISSIONS.get(role, frozenset())


def roles_permitted(event: TicketEvent) -> tuple[Role, ...]:
    """Return the roles allowed to originate ``event``, in code order."""

    return tuple(role for role in ROLE_CODES if permits(role, event))
