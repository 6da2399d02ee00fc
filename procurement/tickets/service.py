from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Sequence
from uuid import UUID, uuid4

from opentelemetry import trace

from procurement.db.errors import TicketConflictError, TicketNotFoundError, UserNotFoundError
from procurement.metrics import (
    MetricsRegistry,
    TicketMetrics,
    metrics_registry,
    register_default_metrics,
    track_duration,
)
from procurement.users.repository import UserRepository
from procurement.workflow.errors import RejectionReason, TransitionRejected
from procurement.workflow.models import Ticket, TransitionPayload, User
from procurement.workflow.roles import Role, TicketEvent
from procurement.workflow.state import TicketStateMachine
from procurement.workflow.validator import apply_transition, edit_description, edit_title, parse_count

from .repository import TicketRepository

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass(slots=True)
class TicketDetails:
    """Ticket snapshot together with the users it references."""

    ticket: Ticket
    initiator: User
    purchasing_manager: User | None
    accounting_manager: User | None


@dataclass(slots=True)
class TicketPage:
    """One page of tickets plus the number of tickets overall."""

    items: Sequence[TicketDetails]
    total_count: int


class TicketService:
    """Orchestrates the load, validate and store cycle for purchase requests.

    The workflow functions decide what a ticket becomes; this class owns the
    storage round trip. Saves that lose an optimistic concurrency race are
    retried on a freshly loaded snapshot, up to ``max_attempts`` times.
    """

    def __init__(
        self,
        tickets: TicketRepository,
        users: UserRepository,
        *,
        max_attempts: int = 3,
        metrics: MetricsRegistry | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._tickets = tickets
        self._users = users
        self._max_attempts = max_attempts
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._metrics = TicketMetrics.from_registry(register_default_metrics(metrics or metrics_registry))

    async def ensure_schema(self) -> None:
        await self._tickets.ensure_schema()

    async def create_ticket(self, actor: User, *, title: str, description: str, count: int) -> TicketDetails:
        if actor.role is not Role.INITIATOR:
            raise self._rejected(
                "create", RejectionReason.FORBIDDEN, "only an initiator may raise a purchase request"
            )
        for field_name, value in (("title", title), ("description", description)):
            if not isinstance(value, str) or not value.strip():
                raise self._rejected(
                    "create", RejectionReason.INVALID_PAYLOAD, f"the {field_name} cannot be empty"
                )
        try:
            count = parse_count(count)
        except TransitionRejected as exc:
            self._record_rejection("create", exc)
            raise

        ticket = Ticket(
            id=uuid4(),
            title=title,
            description=description,
            status=TicketStateMachine.initial_state(),
            count=count,
            price=None,
            initiator_id=actor.id,
            purchasing_manager_id=None,
            accounting_manager_id=None,
            created_at=self._clock(),
        )
        with tracer.start_as_current_span("ticket.create"):
            stored = await self._tickets.add_ticket(ticket)
        self._metrics.created.inc()
        self._metrics.outcome("create", "accepted")
        logger.info("Ticket %s raised by %s for %d item(s)", stored.id, actor.id, stored.count)
        return TicketDetails(ticket=stored, initiator=actor, purchasing_manager=None, accounting_manager=None)

    async def get_ticket(self, ticket_id: UUID) -> TicketDetails:
        ticket = await self._tickets.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        return await self._details(ticket)

    async def list_tickets(self, *, offset: int = 0, limit: int = 20) -> TicketPage:
        if offset < 0 or limit < 0:
            raise ValueError("offset and limit must not be negative")
        tickets = await self._tickets.list_tickets(offset=offset, limit=limit)
        total_count = await self._tickets.count_tickets()

        user_ids: set[UUID] = set()
        for ticket in tickets:
            user_ids.update(_referenced_user_ids(ticket))
        users = await self._users.get_users_by_ids(user_ids)

        items = [self._assemble(ticket, users) for ticket in tickets]
        return TicketPage(items=items, total_count=total_count)

    async def apply_event(
        self,
        ticket_id: UUID,
        *,
        actor: User,
        event: TicketEvent,
        payload: TransitionPayload | None = None,
    ) -> TicketDetails:
        details = await self._mutate(
            ticket_id,
            event.value,
            lambda ticket: apply_transition(ticket, actor, event, payload),
        )
        if event is TicketEvent.DENY and payload is not None and payload.reason:
            logger.info("Ticket %s denied by %s: %s", ticket_id, actor.id, payload.reason)
        return details

    async def edit_title(self, ticket_id: UUID, *, actor: User, title: str) -> TicketDetails:
        return await self._mutate(ticket_id, "edit_title", lambda ticket: edit_title(ticket, actor, title))

    async def edit_description(self, ticket_id: UUID, *, actor: User, description: str) -> TicketDetails:
        return await self._mutate(
            ticket_id,
            "edit_description",
            lambda ticket: edit_description(ticket, actor, description),
        )

    async def _mutate(
        self,
        ticket_id: UUID,
        operation: str,
        change: Callable[[Ticket], Ticket],
    ) -> TicketDetails:
        with tracer.start_as_current_span(f"ticket.{operation}") as span, track_duration(
            self._metrics.duration, labels={"operation": operation}
        ):
            span.set_attribute("ticket.id", str(ticket_id))
            attempt = 0
            while True:
                attempt += 1
                current = await self._tickets.get_ticket(ticket_id)
                if current is None:
                    raise TicketNotFoundError(f"Ticket {ticket_id} not found")

                try:
                    updated = change(current)
                except TransitionRejected as exc:
                    span.set_attribute("ticket.rejection", exc.reason.value)
                    self._record_rejection(operation, exc)
                    raise

                try:
                    saved = await self._tickets.save_ticket(updated)
                except TicketConflictError:
                    self._metrics.conflicts.inc()
                    if attempt >= self._max_attempts:
                        self._metrics.outcome(operation, "conflict")
                        logger.warning(
                            "Giving up on %s for ticket %s after %d conflicting attempts",
                            operation,
                            ticket_id,
                            attempt,
                        )
                        raise
                    logger.info("Conflict saving ticket %s (attempt %d), reloading", ticket_id, attempt)
                    continue

                self._metrics.outcome(operation, "accepted")
                logger.info(
                    "Ticket %s: %s accepted (%s -> %s)",
                    ticket_id,
                    operation,
                    current.status.value,
                    saved.status.value,
                )
                return await self._details(saved)

    def _record_rejection(self, operation: str, exc: TransitionRejected) -> None:
        self._metrics.rejections.inc(labels={"reason": exc.reason.value})
        self._metrics.outcome(operation, "rejected")
        logger.warning("Rejected %s: %s (%s)", operation, exc.message, exc.reason.value)

    def _rejected(self, operation: str, reason: RejectionReason, message: str) -> TransitionRejected:
        exc = TransitionRejected(reason, message)
        self._record_rejection(operation, exc)
        return exc

    async def _details(self, ticket: Ticket) -> TicketDetails:
        users = await self._users.get_users_by_ids(_referenced_user_ids(ticket))
        return self._assemble(ticket, users)

    @staticmethod
    def _assemble(ticket: Ticket, users: dict[UUID, User]) -> TicketDetails:
        def require(user_id: UUID) -> User:
            user = users.get(user_id)
            if user is None:
                raise UserNotFoundError(f"User {user_id} referenced by ticket {ticket.id} not found")
            return user

        def lookup(user_id: UUID | None) -> User | None:
            return None if user_id is None else require(user_id)

        return TicketDetails(
            ticket=ticket,
            initiator=require(ticket.initiator_id),
            purchasing_manager=lookup(ticket.purchasing_manager_id),
            accounting_manager=lookup(ticket.accounting_manager_id),
        )


def _referenced_user_ids(ticket: Ticket) -> list[UUID]:
    candidates = (ticket.initiator_id, ticket.purchasing_manager_id, ticket.accounting_manager_id)
    return [user_id for user_id in candidates if user_id is not None]
