from __future__ import annotations

from enum import Enum


class RejectionReason(str, Enum):
    """Why an operation on a ticket was refused."""

    UNKNOWN_STATE = "unknown_state"
    ILLEGAL_TRANSITION = "illegal_transition"
    FORBIDDEN = "forbidden"
    NOT_OWNER = "not_owner"
    INVALID_PAYLOAD = "invalid_payload"
    NOT_EDITABLE = "not_editable"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"


class TransitionRejected(ValueError):
    """Raised when the workflow engine refuses an operation on a ticket."""

    def __init__(self, reason: RejectionReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransitionRejected):
            return NotImplemented
        return (self.reason, self.message) == (other.reason, other.message)

    def __hash__(self) -> int:
        return hash((self.reason, self.message))

    def __repr__(self) -> str:
        return f"TransitionRejected({self.reason.value!r}, {self.message!r})"
