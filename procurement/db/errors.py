from __future__ import annotations

from procurement.workflow.errors import RejectionReason


class StoreError(RuntimeError):
    """Base error for persistence issues."""

    reason: RejectionReason = RejectionReason.CONFLICT


class TicketNotFoundError(StoreError):
    """Raised when a ticket could not be located."""

    reason = RejectionReason.NOT_FOUND


class UserNotFoundError(StoreError):
    """Raised when a user could not be located."""

    reason = RejectionReason.NOT_FOUND


class TicketConflictError(StoreError):
    """Raised when a ticket was modified after the snapshot being saved was loaded."""

    reason = RejectionReason.CONFLICT


class DuplicateLoginError(StoreError):
    """Raised when a login is already taken by another user."""

    reason = RejectionReason.CONFLICT


class UserReferencedError(StoreError):
    """Raised when deleting or re-keying a user that tickets still reference."""

    reason = RejectionReason.CONFLICT
